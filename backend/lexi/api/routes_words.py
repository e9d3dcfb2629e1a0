from datetime import datetime
from typing import Any, List, Optional

from fastapi import APIRouter, BackgroundTasks, Body, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, validator
from sqlalchemy.orm import Session

from ..config import settings
from ..core.database import get_db
from ..core.notifications import notify
from ..core.records import DIFFICULTIES, identity_key
from ..core.snapshot import SnapshotFormatError, build_snapshot, export_filename, extract_words
from ..core.sync_service import SyncService, get_sync_service, schedule_push
from ..core.sync_state import enqueue_change
from ..core.word_store import (
    FILTERS,
    create_word_record,
    find_by_text,
    list_records,
    merge_remote_words,
    query_words,
    word_stats,
)
from ..models import Word

router = APIRouter(prefix="/words", tags=["words"])


def _check_difficulty(v):
    if v is None:
        return v
    v = v.strip().lower()
    if v == "difficult":
        v = "hard"
    if v not in DIFFICULTIES:
        raise ValueError("difficulty must be one of easy, medium, hard")
    return v


def _check_word(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("word must not be empty")
    return v


# ---------- Schemas ----------

class WordBase(BaseModel):
    word: str
    definition: str = ""
    part_of_speech: str = "noun"
    pronunciation: str = ""
    examples: List[str] = []
    synonyms: List[str] = []
    antonyms: List[str] = []
    notes: str = ""
    difficulty: str = "medium"
    source: str = "Manual Entry"

    @validator("word")
    def validate_word(cls, v):
        return _check_word(v)

    @validator("difficulty")
    def validate_difficulty(cls, v):
        return _check_difficulty(v)


class WordCreate(WordBase):
    mastered: bool = False


class WordUpdate(BaseModel):
    word: Optional[str] = None
    definition: Optional[str] = None
    part_of_speech: Optional[str] = None
    pronunciation: Optional[str] = None
    examples: Optional[List[str]] = None
    synonyms: Optional[List[str]] = None
    antonyms: Optional[List[str]] = None
    notes: Optional[str] = None
    difficulty: Optional[str] = None
    source: Optional[str] = None
    mastered: Optional[bool] = None

    @validator("word")
    def validate_word(cls, v):
        return _check_word(v)

    @validator("difficulty")
    def validate_difficulty(cls, v):
        return _check_difficulty(v)


class WordOut(WordBase):
    id: int
    mastered: bool
    mastered_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class WordStats(BaseModel):
    total: int
    mastered: int
    learning: int
    recent: int
    difficult: int


class ImportResult(BaseModel):
    added: int
    updated: int
    skipped: int
    total: int


# ---------- Endpoints ----------

@router.get("", response_model=List[WordOut])
def list_words(
    search: str = "",
    filter_name: str = Query("all", alias="filter"),
    db: Session = Depends(get_db),
):
    if filter_name not in FILTERS:
        raise HTTPException(status_code=400, detail=f"filter must be one of {', '.join(FILTERS)}")
    return query_words(db, search=search, filter_name=filter_name, recent_days=settings.recent_days)


@router.get("/stats", response_model=WordStats)
def get_stats(db: Session = Depends(get_db)):
    return word_stats(db, recent_days=settings.recent_days)


@router.get("/export")
def export_words(db: Session = Depends(get_db)):
    now = datetime.utcnow()
    snapshot = build_snapshot(list_records(db), now, timestamp_key="exportedAt")
    return JSONResponse(
        content=snapshot,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(now)}"'},
    )


@router.post("/import", response_model=ImportResult)
def import_words(
    background_tasks: BackgroundTasks,
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    try:
        records = extract_words(payload)
    except SnapshotFormatError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    result = merge_remote_words(db, records, default_source="Import")
    if result.changed:
        enqueue_change(db, "import")
        notify(
            db,
            "success",
            f"Imported {len(result.added)} new and {len(result.updated)} updated words",
            **result.summary(),
        )
        db.commit()
        schedule_push(background_tasks, sync)

    return ImportResult(total=db.query(Word).count(), **result.summary())


@router.get("/{word_id}", response_model=WordOut)
def get_word(word_id: int, db: Session = Depends(get_db)):
    w = db.query(Word).filter(Word.id == word_id).first()
    if not w:
        raise HTTPException(status_code=404, detail="Word not found")
    return w


@router.post("", response_model=WordOut, status_code=status.HTTP_201_CREATED)
def create_word(
    payload: WordCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    # Enforce unique word text (case-insensitive)
    if find_by_text(db, payload.word):
        raise HTTPException(status_code=400, detail="Word already exists")

    w = create_word_record(db, payload.dict())
    schedule_push(background_tasks, sync)
    return w


@router.patch("/{word_id}", response_model=WordOut)
def update_word(
    word_id: int,
    payload: WordUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    w = db.query(Word).filter(Word.id == word_id).first()
    if not w:
        raise HTTPException(status_code=404, detail="Word not found")

    data = payload.dict(exclude_unset=True)
    now = datetime.utcnow()

    if data.get("word") is not None:
        # enforce uniqueness
        existing = find_by_text(db, data["word"])
        if existing and existing.id != word_id:
            raise HTTPException(status_code=400, detail="Word already exists")
        w.word = data["word"]
        w.word_key = identity_key(data["word"])

    for field in ("definition", "part_of_speech", "pronunciation", "notes", "difficulty", "source"):
        if data.get(field) is not None:
            setattr(w, field, data[field])

    for field in ("examples", "synonyms", "antonyms"):
        if data.get(field) is not None:
            setattr(w, field, list(data[field]))

    if data.get("mastered") is not None and data["mastered"] != w.mastered:
        w.mastered = data["mastered"]
        w.mastered_at = now if w.mastered else None

    w.updated_at = now

    enqueue_change(db, "update_word")
    notify(db, "success", f'"{w.word}" updated successfully!', word_id=w.id)
    db.commit()
    db.refresh(w)
    schedule_push(background_tasks, sync)
    return w


@router.post("/{word_id}/toggle-mastered", response_model=WordOut)
def toggle_mastered(
    word_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    w = db.query(Word).filter(Word.id == word_id).first()
    if not w:
        raise HTTPException(status_code=404, detail="Word not found")

    now = datetime.utcnow()
    w.mastered = not w.mastered
    w.mastered_at = now if w.mastered else None
    w.updated_at = now

    enqueue_change(db, "toggle_mastered")
    notify(
        db,
        "success",
        f'"{w.word}" marked as mastered!' if w.mastered else f'"{w.word}" unmarked',
        word_id=w.id,
    )
    db.commit()
    db.refresh(w)
    schedule_push(background_tasks, sync)
    return w


@router.delete("/{word_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_word(
    word_id: int,
    background_tasks: BackgroundTasks,
    confirm: bool = Query(False, description="Deleting is irreversible and must be confirmed"),
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    w = db.query(Word).filter(Word.id == word_id).first()
    if not w:
        raise HTTPException(status_code=404, detail="Word not found")
    if not confirm:
        raise HTTPException(
            status_code=400,
            detail=f'Deleting "{w.word}" cannot be undone; repeat with confirm=true',
        )

    label = w.word
    db.delete(w)
    enqueue_change(db, "delete_word")
    notify(db, "success", f'"{label}" deleted')
    db.commit()
    schedule_push(background_tasks, sync)
    return
