from dataclasses import asdict
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..core.snapshot import build_snapshot
from ..core.sync_service import SyncService, get_sync_service
from ..core.sync_state import get_sync_state, pending_changes
from ..core.word_store import list_records
from ..integrations.github import GitHubSnapshotTransport

router = APIRouter(prefix="/sync", tags=["sync"])


class SyncStatusOut(BaseModel):
    enabled: bool
    in_flight: bool
    status: str
    pending_changes: int
    last_pull_at: Optional[datetime]
    last_push_at: Optional[datetime]
    remote_revision: Optional[str]
    last_error: Optional[str]
    handoff_url: Optional[str]


class IssueLinkOut(BaseModel):
    url: str
    word_count: int


def require_sync(sync: Optional[SyncService] = Depends(get_sync_service)) -> SyncService:
    if sync is None:
        raise HTTPException(
            status_code=503,
            detail="Sync is not configured; set GITHUB_OWNER and GITHUB_REPO",
        )
    return sync


@router.get("/status", response_model=SyncStatusOut)
def sync_status(
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    state = get_sync_state(db)
    db.commit()
    return SyncStatusOut(
        enabled=sync is not None,
        in_flight=sync.in_flight if sync else False,
        status=state.status if sync else "disabled",
        pending_changes=len(pending_changes(db)),
        last_pull_at=state.last_pull_at,
        last_push_at=state.last_push_at,
        remote_revision=state.remote_revision,
        last_error=state.last_error,
        handoff_url=state.handoff_url,
    )


@router.post("/pull")
async def sync_pull(force: bool = False, sync: SyncService = Depends(require_sync)):
    report = await sync.pull(force=force)
    return asdict(report)


@router.post("/run")
async def sync_run(force: bool = False, sync: SyncService = Depends(require_sync)):
    report = await sync.sync(force_pull=force)
    return asdict(report)


@router.get("/issue-link", response_model=IssueLinkOut)
def issue_link(
    db: Session = Depends(get_db),
    sync: SyncService = Depends(require_sync),
):
    """Prefilled new-issue URL carrying the current snapshot, for manual submission."""
    transport = sync.transport
    if not isinstance(transport, GitHubSnapshotTransport):
        raise HTTPException(status_code=404, detail="Issue handoff needs a GitHub transport")
    records = list_records(db)
    result = transport.issue_handoff(build_snapshot(records))
    return IssueLinkOut(url=result.url, word_count=len(records))
