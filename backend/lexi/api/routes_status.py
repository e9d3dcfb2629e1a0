from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..config import settings
from ..core.database import get_db
from ..core.sync_service import get_sync_service
from ..core.sync_state import get_sync_state, pending_changes
from ..core.word_store import word_stats
from ..models import Word

router = APIRouter(tags=["status"])


class WordOfDayItem(BaseModel):
    id: int | None
    word: str
    definition: str
    part_of_speech: str | None = None


class StatsItem(BaseModel):
    total: int
    mastered: int
    learning: int
    recent: int
    difficult: int


class SyncItem(BaseModel):
    enabled: bool
    status: str
    pending_changes: int
    last_pull_at: datetime | None


class StatusTodayResponse(BaseModel):
    now: datetime
    stats: StatsItem
    word_of_day: WordOfDayItem
    sync: SyncItem


@router.get("/health")
def health():
    return {"status": "ok", "time": datetime.utcnow().isoformat() + "Z"}


@router.get("/status/today", response_model=StatusTodayResponse)
def status_today(db: Session = Depends(get_db), sync=Depends(get_sync_service)):
    now = datetime.utcnow()

    # --- Word of the day: rotate through words still being learned ---
    words = (
        db.query(Word)
        .filter(Word.mastered == False)  # noqa: E712
        .order_by(Word.id)
        .all()
    )
    if not words:
        words = db.query(Word).order_by(Word.id).all()

    if words:
        idx = date.today().toordinal() % len(words)
        w = words[idx]
        word_of_day = WordOfDayItem(
            id=w.id,
            word=w.word,
            definition=w.definition,
            part_of_speech=w.part_of_speech,
        )
    else:
        word_of_day = WordOfDayItem(
            id=None,
            word="placeholder",
            definition="No words added yet.",
        )

    # --- Sync indicator ---
    state = get_sync_state(db)
    db.commit()
    sync_item = SyncItem(
        enabled=sync is not None,
        status=state.status if sync else "disabled",
        pending_changes=len(pending_changes(db)),
        last_pull_at=state.last_pull_at,
    )

    return StatusTodayResponse(
        now=now,
        stats=StatsItem(**word_stats(db, recent_days=settings.recent_days, now=now)),
        word_of_day=word_of_day,
        sync=sync_item,
    )
