from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..models import NotificationEvent

logger = logging.getLogger(__name__)

LEVELS = ("success", "info", "warning", "error")


def notify(db: Session, level: str, message: str, **payload: Any) -> NotificationEvent:
    """
    Record a transient user-facing message (a "toast").
    The caller owns the transaction and commits it with its own changes.
    """
    if level not in LEVELS:
        level = "info"
    evt = NotificationEvent(
        level=level,
        message=message,
        payload_json=json.dumps(payload, default=str) if payload else None,
    )
    db.add(evt)
    logger.log(logging.WARNING if level in ("warning", "error") else logging.INFO, "[%s] %s", level, message)
    return evt


def recent_notifications(
    db: Session,
    after_id: int = 0,
    limit: int = 20,
    include_dismissed: bool = False,
) -> List[NotificationEvent]:
    q = db.query(NotificationEvent).filter(NotificationEvent.id > after_id)
    if not include_dismissed:
        q = q.filter(NotificationEvent.dismissed_at.is_(None))
    return q.order_by(NotificationEvent.id.asc()).limit(limit).all()


def notification_payload(evt: NotificationEvent) -> Optional[Dict[str, Any]]:
    if not evt.payload_json:
        return None
    try:
        return json.loads(evt.payload_json)
    except ValueError:
        return None


def dismiss_notification(db: Session, evt: NotificationEvent) -> None:
    evt.dismissed_at = datetime.utcnow()
    db.commit()
