"""
Conversion between the camelCase word records used in snapshots, exports and
imports, and the ``Word`` rows of the local store.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import Word

EPOCH = datetime(1970, 1, 1)

DIFFICULTIES = ("easy", "medium", "hard")

# camelCase record key -> Word column
FIELD_COLUMNS = {
    "word": "word",
    "definition": "definition",
    "partOfSpeech": "part_of_speech",
    "pronunciation": "pronunciation",
    "examples": "examples",
    "synonyms": "synonyms",
    "antonyms": "antonyms",
    "notes": "notes",
    "difficulty": "difficulty",
    "mastered": "mastered",
    "masteredAt": "mastered_at",
    "source": "source",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

TIMESTAMP_FIELDS = ("masteredAt", "createdAt", "updatedAt")


def identity_key(word: str) -> str:
    return (word or "").strip().lower()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or a datetime) into a naive UTC datetime.
    Returns None for anything unparseable.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def format_timestamp(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return dt.isoformat() + "Z"


def normalize_difficulty(value: Any) -> str:
    v = str(value or "").strip().lower()
    if v == "difficult":
        return "hard"
    if v in DIFFICULTIES:
        return v
    return "medium"


def _as_list(value: Any, separator: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(separator)
    elif isinstance(value, (list, tuple)):
        parts = [str(v) for v in value if v is not None]
    else:
        return []
    return [p.strip() for p in parts if p.strip()]


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y")
    return bool(value)


def _as_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value).strip()


def normalize_record(raw: Any) -> Optional[Dict[str, Any]]:
    """
    Permissively coerce a word-like mapping into a record.
    Returns None when there is no usable word text.
    Timestamps that cannot be parsed are dropped (left as None).
    """
    if not isinstance(raw, dict):
        return None
    word = _as_text(raw.get("word"))
    if not word:
        return None

    record: Dict[str, Any] = {
        "word": word,
        "definition": _as_text(raw.get("definition")),
        "partOfSpeech": _as_text(raw.get("partOfSpeech"), "noun") or "noun",
        "pronunciation": _as_text(raw.get("pronunciation")),
        "examples": _as_list(raw.get("examples"), "\n"),
        "synonyms": _as_list(raw.get("synonyms"), ","),
        "antonyms": _as_list(raw.get("antonyms"), ","),
        "notes": _as_text(raw.get("notes")),
        "difficulty": normalize_difficulty(raw.get("difficulty")),
        "mastered": _as_bool(raw.get("mastered", False)),
        "source": _as_text(raw.get("source")),
    }
    for field in TIMESTAMP_FIELDS:
        record[field] = parse_timestamp(raw.get(field))
    return record


def record_timestamp(record: Dict[str, Any]) -> datetime:
    """
    Recency used for conflict resolution: updatedAt, then createdAt,
    then the epoch.
    """
    for field in ("updatedAt", "createdAt"):
        ts = parse_timestamp(record.get(field))
        if ts is not None:
            return ts
    return EPOCH


def word_to_record(w: Word) -> Dict[str, Any]:
    return {
        "id": w.id,
        "word": w.word,
        "definition": w.definition or "",
        "partOfSpeech": w.part_of_speech or "noun",
        "pronunciation": w.pronunciation or "",
        "examples": list(w.examples or []),
        "synonyms": list(w.synonyms or []),
        "antonyms": list(w.antonyms or []),
        "notes": w.notes or "",
        "difficulty": w.difficulty or "medium",
        "mastered": bool(w.mastered),
        "masteredAt": format_timestamp(w.mastered_at),
        "source": w.source or "",
        "createdAt": format_timestamp(w.created_at),
        "updatedAt": format_timestamp(w.updated_at),
    }


def apply_record(w: Word, record: Dict[str, Any]) -> None:
    """Copy every content field of a normalized record onto a Word row."""
    for key, column in FIELD_COLUMNS.items():
        value = record.get(key)
        if key in TIMESTAMP_FIELDS:
            value = parse_timestamp(value)
        elif key in ("examples", "synonyms", "antonyms"):
            value = list(value or [])
        setattr(w, column, value)
    w.word_key = identity_key(record["word"])
