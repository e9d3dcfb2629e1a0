from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from .records import format_timestamp

SNAPSHOT_VERSION = "1.0"


class SnapshotFormatError(ValueError):
    pass


def build_snapshot(
    records: List[Dict[str, Any]],
    now: Optional[datetime] = None,
    timestamp_key: str = "lastSync",
) -> Dict[str, Any]:
    now = now or datetime.utcnow()
    return {
        "words": records,
        "metadata": {
            timestamp_key: format_timestamp(now),
            "totalWords": len(records),
            "version": SNAPSHOT_VERSION,
        },
    }


def extract_words(data: Any) -> List[Any]:
    """
    Pull the word list out of a snapshot document.
    A bare list of records is accepted as well.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("words"), list):
        return data["words"]
    raise SnapshotFormatError("snapshot has no 'words' list")


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"dictionary_export_{now.date().isoformat()}.json"


def dumps(snapshot: Dict[str, Any]) -> str:
    return json.dumps(snapshot, indent=2, ensure_ascii=False)


def issue_title(word_count: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    return f"[DICT-SYNC] {now.date().isoformat()} - {word_count} words"


def issue_body(snapshot: Dict[str, Any]) -> str:
    return "```json\n" + dumps(snapshot) + "\n```"
