from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from ..core.database import Base


class SyncState(Base):
    __tablename__ = "sync_state"

    # Single row, id=1
    id = Column(Integer, primary_key=True)
    status = Column(String, default="idle")  # idle | syncing | synced | pending | offline | error

    last_pull_at = Column(DateTime, nullable=True)
    last_push_at = Column(DateTime, nullable=True)

    # Commit sha of the snapshot file seen at the last successful pull
    remote_revision = Column(String, nullable=True)

    last_error = Column(Text, nullable=True)
    handoff_url = Column(Text, nullable=True)

    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SyncOutboxEntry(Base):
    __tablename__ = "sync_outbox"

    id = Column(Integer, primary_key=True, index=True)
    action = Column(String, nullable=False)  # add_word | update_word | toggle_mastered | delete_word | import | bootstrap
    word_count = Column(Integer, default=0)

    status = Column(String, default="PENDING")  # PENDING | FAILED | SENT | HANDED_OFF
    attempt_count = Column(Integer, default=0)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    sent_at = Column(DateTime, nullable=True)
