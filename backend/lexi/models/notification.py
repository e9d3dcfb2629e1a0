from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text

from ..core.database import Base


class NotificationEvent(Base):
    __tablename__ = "notification_events"

    id = Column(Integer, primary_key=True, index=True)
    level = Column(String, nullable=False, default="info")  # success | info | warning | error
    message = Column(Text, nullable=False)
    payload_json = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    dismissed_at = Column(DateTime, nullable=True)
