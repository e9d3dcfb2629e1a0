from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from fastapi import BackgroundTasks, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..integrations.github import PushFailed, PushNotConfigured, SnapshotTransport
from .database import SessionLocal
from .notifications import notify
from .snapshot import build_snapshot
from .sync_state import enqueue_bootstrap, get_sync_state, mark_failed, mark_pushed, pending_changes
from .word_store import list_records, merge_remote_words

logger = logging.getLogger(__name__)


@dataclass
class PullReport:
    # Another sync was already running
    skipped: bool = False
    # Remote revision matched the last pull, nothing fetched
    unchanged: bool = False
    available: bool = True
    # False when the repository has no snapshot file yet
    exists: bool = True
    added: int = 0
    updated: int = 0
    skipped_records: int = 0
    revision: Optional[str] = None


@dataclass
class PushReport:
    attempted: bool = False
    pending: int = 0
    mode: Optional[str] = None
    durable: bool = False
    detail: Optional[str] = None
    url: Optional[str] = None
    error: Optional[str] = None


@dataclass
class SyncReport:
    skipped: bool = False
    pull: Optional[PullReport] = None
    push: Optional[PushReport] = None


class SyncService:
    """
    Pulls the shared snapshot into the local store and pushes queued local
    changes back. Only one pull or sync runs at a time; an overlapping call
    returns a skipped report.
    """

    def __init__(
        self,
        transport: SnapshotTransport,
        session_factory: Callable[[], Session] = SessionLocal,
    ) -> None:
        self.transport = transport
        self.session_factory = session_factory
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def pull(self, force: bool = False) -> PullReport:
        if self._in_flight:
            return PullReport(skipped=True)
        self._in_flight = True
        db = self.session_factory()
        try:
            return await self._pull(db, force)
        except Exception as exc:
            self._record_error(db, exc)
            raise
        finally:
            db.close()
            self._in_flight = False

    async def sync(self, force_pull: bool = False) -> SyncReport:
        """Pull and merge first, then push the whole collection if changes are queued."""
        if self._in_flight:
            return SyncReport(skipped=True)
        self._in_flight = True
        db = self.session_factory()
        try:
            pull = await self._pull(db, force_pull)
            push = await self._push(db)
            return SyncReport(pull=pull, push=push)
        except Exception as exc:
            self._record_error(db, exc)
            raise
        finally:
            db.close()
            self._in_flight = False

    async def flush_on_shutdown(self, timeout: float = 5.0) -> Optional[SyncReport]:
        """
        Best-effort push of queued changes before exit. Whatever is not
        delivered stays in the outbox and goes out with the startup sync.
        """
        db = self.session_factory()
        try:
            pending = len(pending_changes(db))
        finally:
            db.close()
        if not pending:
            return None

        try:
            return await asyncio.wait_for(self.sync(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Shutdown flush timed out; %d changes stay queued", pending)
        except Exception:
            logger.exception("Shutdown flush failed; %d changes stay queued", pending)
        return None

    # ---------- Steps ----------

    async def _pull(self, db: Session, force: bool) -> PullReport:
        state = get_sync_state(db)
        state.status = "syncing"
        db.commit()

        revision = await self.transport.latest_revision()
        now = datetime.utcnow()

        if not force and revision and revision == state.remote_revision:
            state.last_pull_at = now
            state.status = "pending" if pending_changes(db) else "synced"
            db.commit()
            return PullReport(unchanged=True, revision=revision)

        snapshot = await self.transport.fetch_snapshot(revision)
        if snapshot is None:
            state.status = "offline"
            state.last_error = "Remote snapshot unavailable; using local data"
            db.commit()
            return PullReport(available=False, revision=revision)

        if not snapshot.exists:
            # Fresh repository: the next push creates the file from local data
            if enqueue_bootstrap(db) is not None:
                logger.info("No remote snapshot yet; queued a push to create it")
            state.remote_revision = revision
            state.last_pull_at = now
            state.last_error = None
            state.status = "pending"
            db.commit()
            return PullReport(exists=False, revision=revision)

        result = merge_remote_words(db, snapshot.words, default_source="Sync", now=now)

        state.remote_revision = revision
        state.last_pull_at = now
        state.last_error = None
        state.status = "pending" if pending_changes(db) else "synced"
        if result.changed:
            notify(
                db,
                "success",
                f"Synced {len(result.added)} new and {len(result.updated)} updated words from GitHub",
                **result.summary(),
            )
        db.commit()

        return PullReport(
            added=len(result.added),
            updated=len(result.updated),
            skipped_records=result.skipped,
            revision=revision,
        )

    async def _push(self, db: Session) -> PushReport:
        entries = pending_changes(db)
        if not entries:
            return PushReport()

        state = get_sync_state(db)
        now = datetime.utcnow()
        snapshot = build_snapshot(list_records(db), now)

        try:
            result = await self.transport.push_snapshot(snapshot)
        except (PushNotConfigured, PushFailed) as exc:
            mark_failed(entries, str(exc), now)
            state.status = "error"
            state.last_error = str(exc)
            db.commit()
            logger.warning("Push failed, %d changes stay queued: %s", len(entries), exc)
            return PushReport(attempted=True, pending=len(entries), error=str(exc))

        mark_pushed(entries, "SENT" if result.durable else "HANDED_OFF", now)
        state.last_push_at = now
        state.last_error = None
        state.handoff_url = result.url
        state.status = "synced" if result.durable else "pending"
        if not result.durable:
            notify(db, "info", result.detail, mode=result.mode, url=result.url)
        db.commit()

        return PushReport(
            attempted=True,
            pending=len(entries),
            mode=result.mode,
            durable=result.durable,
            detail=result.detail,
            url=result.url,
        )

    def _record_error(self, db: Session, exc: Exception) -> None:
        logger.exception("Sync failed")
        try:
            db.rollback()
            state = get_sync_state(db)
            state.status = "error"
            state.last_error = str(exc)
            db.commit()
        except Exception:
            logger.exception("Could not record sync error")
            db.rollback()


# FastAPI dependency
def get_sync_service(request: Request) -> Optional[SyncService]:
    return getattr(request.app.state, "sync", None)


def schedule_push(background_tasks: BackgroundTasks, sync: Optional[SyncService]) -> None:
    """Run a sync after the response when push-on-change is enabled."""
    if sync is not None and settings.sync_push_on_change:
        background_tasks.add_task(sync.sync)
