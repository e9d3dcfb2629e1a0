from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models import Word
from .merge import plan_merge
from .notifications import notify
from .records import apply_record, identity_key, word_to_record
from .sync_state import enqueue_change

FILTERS = ("all", "mastered", "learning", "difficult", "recent")


@dataclass
class MergeResult:
    added: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    skipped: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated)

    def summary(self) -> Dict[str, Any]:
        return {
            "added": len(self.added),
            "updated": len(self.updated),
            "skipped": self.skipped,
        }


def list_records(db: Session) -> List[Dict[str, Any]]:
    return [word_to_record(w) for w in db.query(Word).order_by(Word.id).all()]


def find_by_text(db: Session, text: str) -> Optional[Word]:
    return db.query(Word).filter(Word.word_key == identity_key(text)).first()


def merge_remote_words(
    db: Session,
    remote: Iterable[Any],
    *,
    default_source: str = "Sync",
    now: Optional[datetime] = None,
) -> MergeResult:
    """
    Fold remote records into the local store and commit.
    Nothing is removed locally; see plan_merge for the rules.
    """
    plan = plan_merge(list_records(db), remote, now=now, default_source=default_source)
    result = MergeResult(skipped=plan.skipped)

    for record in plan.additions:
        w = Word()
        apply_record(w, record)
        db.add(w)
        result.added.append(record["word"])

    for word_id, record in plan.updates:
        w = db.get(Word, word_id)
        if w is None:
            continue
        apply_record(w, record)
        result.updated.append(record["word"])

    if result.changed:
        db.commit()
    return result


def query_words(
    db: Session,
    search: str = "",
    filter_name: str = "all",
    recent_days: int = 7,
    now: Optional[datetime] = None,
) -> List[Word]:
    q = db.query(Word)

    if search:
        pattern = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Word.word.ilike(pattern),
                Word.definition.ilike(pattern),
                Word.notes.ilike(pattern),
            )
        )

    if filter_name == "mastered":
        q = q.filter(Word.mastered == True)  # noqa: E712
    elif filter_name == "learning":
        q = q.filter(Word.mastered == False)  # noqa: E712
    elif filter_name == "difficult":
        q = q.filter(Word.difficulty == "hard")
    elif filter_name == "recent":
        since = (now or datetime.utcnow()) - timedelta(days=recent_days)
        q = q.filter(Word.created_at > since)

    return sorted(q.all(), key=lambda w: w.word_key)


def word_stats(db: Session, recent_days: int = 7, now: Optional[datetime] = None) -> Dict[str, int]:
    since = (now or datetime.utcnow()) - timedelta(days=recent_days)
    total = db.query(Word).count()
    mastered = db.query(Word).filter(Word.mastered == True).count()  # noqa: E712
    recent = db.query(Word).filter(Word.created_at > since).count()
    difficult = db.query(Word).filter(Word.difficulty == "hard").count()
    return {
        "total": total,
        "mastered": mastered,
        "learning": total - mastered,
        "recent": recent,
        "difficult": difficult,
    }


def create_word_record(db: Session, data: Dict[str, Any]) -> Word:
    """
    Insert a new word from snake_case fields, queue it for the next push
    and commit. Uniqueness is the caller's check.
    """
    now = datetime.utcnow()
    w = Word(
        word=data["word"],
        word_key=identity_key(data["word"]),
        definition=data.get("definition") or "",
        part_of_speech=data.get("part_of_speech") or "noun",
        pronunciation=data.get("pronunciation") or "",
        examples=list(data.get("examples") or []),
        synonyms=list(data.get("synonyms") or []),
        antonyms=list(data.get("antonyms") or []),
        notes=data.get("notes") or "",
        difficulty=data.get("difficulty") or "medium",
        mastered=bool(data.get("mastered", False)),
        mastered_at=now if data.get("mastered") else None,
        source=data.get("source") or "Manual Entry",
        created_at=now,
        updated_at=now,
    )
    db.add(w)
    enqueue_change(db, "add_word")
    notify(db, "success", f'"{w.word}" added to dictionary!')
    db.commit()
    db.refresh(w)
    return w
