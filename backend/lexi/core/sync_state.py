from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models import SyncOutboxEntry, SyncState, Word

PENDING_STATUSES = ("PENDING", "FAILED")


def get_sync_state(db: Session) -> SyncState:
    state = db.get(SyncState, 1)
    if state is None:
        state = SyncState(id=1, status="idle")
        db.add(state)
        db.flush()
    return state


def enqueue_change(db: Session, action: str) -> SyncOutboxEntry:
    """
    Queue a local change for the next push. The caller commits.
    """
    db.flush()
    entry = SyncOutboxEntry(
        action=action,
        word_count=db.query(Word).count(),
        status="PENDING",
    )
    db.add(entry)
    return entry


def enqueue_bootstrap(db: Session) -> Optional[SyncOutboxEntry]:
    """
    Queue a push that creates the missing remote snapshot from the local
    store. Nothing is queued while other changes are pending or an earlier
    bootstrap is still waiting on a manual hand-off.
    """
    if pending_changes(db):
        return None
    handed_off = (
        db.query(SyncOutboxEntry)
        .filter(SyncOutboxEntry.action == "bootstrap", SyncOutboxEntry.status == "HANDED_OFF")
        .first()
    )
    if handed_off is not None:
        return None
    entry = enqueue_change(db, "bootstrap")
    db.flush()
    return entry


def pending_changes(db: Session) -> List[SyncOutboxEntry]:
    return (
        db.query(SyncOutboxEntry)
        .filter(SyncOutboxEntry.status.in_(PENDING_STATUSES))
        .order_by(SyncOutboxEntry.created_at.asc(), SyncOutboxEntry.id.asc())
        .all()
    )


def mark_pushed(entries: List[SyncOutboxEntry], status: str, now: datetime) -> None:
    for entry in entries:
        entry.status = status
        entry.sent_at = now
        entry.last_error = None
        entry.updated_at = now


def mark_failed(entries: List[SyncOutboxEntry], error: str, now: datetime) -> None:
    for entry in entries:
        entry.attempt_count = (entry.attempt_count or 0) + 1
        entry.last_error = error
        entry.status = "FAILED"
        entry.updated_at = now
