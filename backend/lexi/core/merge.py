from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .records import identity_key, normalize_record, record_timestamp

logger = logging.getLogger(__name__)


@dataclass
class MergePlan:
    additions: List[Dict[str, Any]] = field(default_factory=list)
    # (local id, incoming record)
    updates: List[Tuple[int, Dict[str, Any]]] = field(default_factory=list)
    skipped: int = 0

    @property
    def changed(self) -> bool:
        return bool(self.additions or self.updates)


def plan_merge(
    local: Iterable[Dict[str, Any]],
    remote: Iterable[Any],
    *,
    now: Optional[datetime] = None,
    default_source: str = "Sync",
) -> MergePlan:
    """
    Work out how a remote list of word-like records folds into the local
    collection.

    Records match on the lower-cased word text. A remote record missing
    locally becomes an addition; a matching one replaces the local content
    only when its updatedAt (or createdAt) is strictly later, and keeps the
    local id. Local records are never removed.
    """
    now = now or datetime.utcnow()

    index: Dict[str, Dict[str, Any]] = {}
    for rec in local:
        key = identity_key(rec.get("word", ""))
        if key:
            index[key] = rec

    additions: Dict[str, Dict[str, Any]] = {}
    updates: Dict[str, Dict[str, Any]] = {}
    skipped = 0

    for raw in remote:
        incoming = normalize_record(raw)
        if incoming is None:
            skipped += 1
            continue

        key = identity_key(incoming["word"])

        if key in additions:
            # Same word twice in the remote list: keep the newer one
            if record_timestamp(incoming) > record_timestamp(additions[key]):
                additions[key] = _fill_new_record(incoming, now, default_source)
            continue

        current = updates.get(key) or index.get(key)
        if current is None:
            additions[key] = _fill_new_record(incoming, now, default_source)
            continue

        if record_timestamp(incoming) > record_timestamp(current):
            updates[key] = _fill_updated_record(incoming, current, index[key]["id"], default_source)

    if skipped:
        logger.warning("Skipped %d remote records without a word", skipped)

    return MergePlan(
        additions=list(additions.values()),
        updates=[(rec["id"], rec) for rec in updates.values()],
        skipped=skipped,
    )


def _fill_updated_record(
    record: Dict[str, Any],
    current: Dict[str, Any],
    word_id: int,
    default_source: str,
) -> Dict[str, Any]:
    filled = dict(record, id=word_id)
    if filled.get("createdAt") is None:
        filled["createdAt"] = current.get("createdAt")
    # The record won on this timestamp, so it is later than the local updatedAt
    if filled.get("updatedAt") is None:
        filled["updatedAt"] = record_timestamp(record)
    if not filled.get("source"):
        filled["source"] = current.get("source") or default_source
    return filled


def _fill_new_record(record: Dict[str, Any], now: datetime, default_source: str) -> Dict[str, Any]:
    filled = dict(record)
    if filled.get("createdAt") is None:
        filled["createdAt"] = filled.get("updatedAt") or now
    if filled.get("updatedAt") is None:
        filled["updatedAt"] = filled["createdAt"]
    if not filled.get("source"):
        filled["source"] = default_source
    return filled
