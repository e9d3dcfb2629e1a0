from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from lexi.core.database import Base, get_db
from lexi.core.records import apply_record, normalize_record
from lexi.core.sync_service import SyncService, get_sync_service
from lexi.integrations.github import PushResult, RemoteSnapshot, SnapshotTransport
from lexi.main import app
from lexi.models import Word


class FakeTransport(SnapshotTransport):
    """
    In-memory stand-in for the GitHub snapshot. words=None means unreachable,
    exists=False means the repository has no snapshot file.
    """

    def __init__(
        self,
        words: Optional[List[Dict[str, Any]]] = None,
        revision: Optional[str] = None,
        push_result: Optional[PushResult] = None,
        push_error: Optional[Exception] = None,
        exists: bool = True,
    ) -> None:
        self.words = words
        self.exists = exists
        self.fetched_revisions: List[Optional[str]] = []
        self.revision = revision
        self.push_result = push_result or PushResult(mode="contents", durable=True, detail="ok")
        self.push_error = push_error
        self.pushed: List[Dict[str, Any]] = []
        self.fetches = 0

    async def latest_revision(self) -> Optional[str]:
        return self.revision

    async def fetch_snapshot(self, revision: Optional[str] = None) -> Optional[RemoteSnapshot]:
        self.fetches += 1
        self.fetched_revisions.append(revision)
        await asyncio.sleep(0)
        if not self.exists:
            return RemoteSnapshot(words=[], exists=False)
        if self.words is None:
            return None
        return RemoteSnapshot(words=[dict(w) for w in self.words])

    async def push_snapshot(self, snapshot: Dict[str, Any]) -> PushResult:
        if self.push_error is not None:
            raise self.push_error
        self.pushed.append(snapshot)
        return self.push_result


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(words=[])


@pytest.fixture
def sync(transport, session_factory) -> SyncService:
    return SyncService(transport, session_factory)


@pytest.fixture
def client(session_factory, sync):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_sync_service] = lambda: sync
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def add_local(db, word: str, updated: str = "2024-01-01T00:00:00", **fields) -> Word:
    record = normalize_record({"word": word, "createdAt": updated, "updatedAt": updated, **fields})
    w = Word()
    apply_record(w, record)
    db.add(w)
    db.commit()
    db.refresh(w)
    return w
