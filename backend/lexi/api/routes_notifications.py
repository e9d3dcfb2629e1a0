from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.notifications import dismiss_notification, notification_payload, recent_notifications
from ..models import NotificationEvent

router = APIRouter(prefix="/notifications", tags=["notifications"])


class NotificationOut(BaseModel):
    id: int
    level: str
    message: str
    payload: Optional[dict]
    created_at: datetime
    dismissed_at: Optional[datetime]


def _to_out(evt: NotificationEvent) -> NotificationOut:
    return NotificationOut(
        id=evt.id,
        level=evt.level,
        message=evt.message,
        payload=notification_payload(evt),
        created_at=evt.created_at,
        dismissed_at=evt.dismissed_at,
    )


@router.get("", response_model=List[NotificationOut])
def list_notifications(
    after_id: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return [_to_out(evt) for evt in recent_notifications(db, after_id=after_id, limit=limit)]


@router.post("/{event_id}/dismiss", response_model=NotificationOut)
def dismiss(event_id: int, db: Session = Depends(get_db)):
    evt = db.query(NotificationEvent).filter(NotificationEvent.id == event_id).first()
    if not evt:
        raise HTTPException(status_code=404, detail="Notification not found")
    dismiss_notification(db, evt)
    db.refresh(evt)
    return _to_out(evt)
