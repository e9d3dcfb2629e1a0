from __future__ import annotations

import base64
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote, urlencode

import httpx

from ..core.snapshot import dumps, extract_words, issue_body, issue_title, SnapshotFormatError

logger = logging.getLogger(__name__)

RAW_BASE = "https://raw.githubusercontent.com"
API_BASE = "https://api.github.com"
WEB_BASE = "https://github.com"

PUSH_MODES = ("contents", "dispatch", "issue")
ISSUE_LABELS = "dictionary-sync,auto-sync"


class PushNotConfigured(RuntimeError):
    """The push mode needs a credential or setting that is missing."""


class PushFailed(RuntimeError):
    """The remote rejected the push or could not be reached."""


@dataclass
class RemoteSnapshot:
    words: List[Any]
    metadata: Dict[str, Any] = field(default_factory=dict)
    # False when the repository has no snapshot file yet
    exists: bool = True


@dataclass
class PushResult:
    mode: str
    # True only when the snapshot was actually written to the repository
    durable: bool
    detail: str
    url: Optional[str] = None


class SnapshotTransport(ABC):
    """Where the shared snapshot lives and how to read and write it."""

    async def latest_revision(self) -> Optional[str]:
        return None

    @abstractmethod
    async def fetch_snapshot(self, revision: Optional[str] = None) -> Optional[RemoteSnapshot]:
        """
        The snapshot at ``revision`` (or the latest one), an empty snapshot
        with ``exists=False`` when there is no file, or None when unreachable.
        """

    @abstractmethod
    async def push_snapshot(self, snapshot: Dict[str, Any]) -> PushResult:
        ...


@dataclass
class GitHubRepo:
    owner: str
    repo: str
    branch: str = "main"
    path: str = "dictionary.json"

    @property
    def raw_url(self) -> str:
        return self.raw_url_at(self.branch)

    def raw_url_at(self, ref: str) -> str:
        return f"{RAW_BASE}/{self.owner}/{self.repo}/{ref}/{self.path}"

    @property
    def contents_url(self) -> str:
        return f"{API_BASE}/repos/{self.owner}/{self.repo}/contents/{self.path}"

    @property
    def commits_url(self) -> str:
        return f"{API_BASE}/repos/{self.owner}/{self.repo}/commits"

    @property
    def dispatch_url(self) -> str:
        return f"{API_BASE}/repos/{self.owner}/{self.repo}/dispatches"

    def new_issue_url(self, title: str, body: str, labels: str = ISSUE_LABELS) -> str:
        query = urlencode({"title": title, "body": body, "labels": labels}, quote_via=quote)
        return f"{WEB_BASE}/{self.owner}/{self.repo}/issues/new?{query}"


class GitHubSnapshotTransport(SnapshotTransport):
    """
    Reads the snapshot from raw.githubusercontent.com (no auth) and pushes it
    back in one of three modes:

    - contents: commit the file through the contents API (needs a token)
    - dispatch: fire a repository_dispatch event for a workflow to act on
    - issue: build a prefilled new-issue URL for a human to submit
    """

    def __init__(
        self,
        repo: GitHubRepo,
        *,
        token: Optional[str] = None,
        push_mode: str = "contents",
        timeout: float = 10.0,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        if push_mode not in PUSH_MODES:
            raise ValueError(f"push_mode must be one of {', '.join(PUSH_MODES)}")
        self.repo = repo
        self.token = token
        self.push_mode = push_mode
        self.timeout = timeout
        self._client_factory = client_factory or (lambda: httpx.AsyncClient(timeout=self.timeout))

    def _api_headers(self, auth: bool = False) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if auth and self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    # ---------- Reads ----------

    async def latest_revision(self) -> Optional[str]:
        params = {"path": self.repo.path, "sha": self.repo.branch, "per_page": 1}
        try:
            async with self._client_factory() as client:
                r = await client.get(
                    self.repo.commits_url,
                    params=params,
                    headers=self._api_headers(auth=True),
                )
            if r.status_code != 200:
                return None
            commits = r.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info("Could not read latest revision: %s", exc)
            return None

        if isinstance(commits, list) and commits and isinstance(commits[0], dict):
            return commits[0].get("sha")
        return None

    async def fetch_snapshot(self, revision: Optional[str] = None) -> Optional[RemoteSnapshot]:
        # Reading at the commit sha bypasses the CDN copy of the branch head
        url = self.repo.raw_url_at(revision) if revision else self.repo.raw_url
        try:
            async with self._client_factory() as client:
                r = await client.get(
                    url,
                    headers={"Accept": "application/json", "Cache-Control": "no-cache"},
                )
        except httpx.HTTPError as exc:
            logger.warning("Remote snapshot unavailable: %s", exc)
            return None

        if r.status_code == 404:
            logger.info("No remote snapshot at %s yet", url)
            return RemoteSnapshot(words=[], exists=False)
        if r.status_code != 200:
            logger.warning("Remote snapshot unavailable (HTTP %s)", r.status_code)
            return None

        try:
            data = r.json()
            words = extract_words(data)
        except (ValueError, SnapshotFormatError) as exc:
            logger.warning("Remote snapshot is not usable: %s", exc)
            return None

        metadata = data.get("metadata") if isinstance(data, dict) else None
        return RemoteSnapshot(words=words, metadata=metadata or {})

    # ---------- Writes ----------

    async def push_snapshot(self, snapshot: Dict[str, Any]) -> PushResult:
        if self.push_mode == "issue":
            return self.issue_handoff(snapshot)
        if not self.token:
            raise PushNotConfigured(f"push mode '{self.push_mode}' needs GITHUB_TOKEN")
        if self.push_mode == "dispatch":
            return await self._push_dispatch(snapshot)
        return await self._push_contents(snapshot)

    def issue_handoff(self, snapshot: Dict[str, Any], now: Optional[datetime] = None) -> PushResult:
        count = len(snapshot.get("words", []))
        url = self.repo.new_issue_url(issue_title(count, now), issue_body(snapshot))
        return PushResult(
            mode="issue",
            durable=False,
            detail="Open the issue link and submit it to publish the snapshot",
            url=url,
        )

    async def _push_contents(self, snapshot: Dict[str, Any]) -> PushResult:
        count = len(snapshot.get("words", []))
        content = base64.b64encode(dumps(snapshot).encode("utf-8")).decode("ascii")
        headers = self._api_headers(auth=True)

        try:
            async with self._client_factory() as client:
                existing = await client.get(
                    self.repo.contents_url,
                    params={"ref": self.repo.branch},
                    headers=headers,
                )
                sha = None
                if existing.status_code == 200:
                    sha = existing.json().get("sha")
                elif existing.status_code != 404:
                    raise PushFailed(f"GitHub API error: {existing.status_code}")

                body: Dict[str, Any] = {
                    "message": f"Update dictionary: {count} words",
                    "content": content,
                    "branch": self.repo.branch,
                }
                if sha:
                    body["sha"] = sha

                r = await client.put(self.repo.contents_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            raise PushFailed(str(exc)) from exc

        if r.status_code not in (200, 201):
            raise PushFailed(f"GitHub API error: {r.status_code}")

        return PushResult(
            mode="contents",
            durable=True,
            detail=f"Committed {count} words to {self.repo.path}",
        )

    async def _push_dispatch(self, snapshot: Dict[str, Any]) -> PushResult:
        count = len(snapshot.get("words", []))
        payload = {
            "event_type": "dictionary_update",
            "client_payload": {
                "timestamp": snapshot.get("metadata", {}).get("lastSync"),
                "word_count": count,
            },
        }
        try:
            async with self._client_factory() as client:
                r = await client.post(
                    self.repo.dispatch_url,
                    json=payload,
                    headers=self._api_headers(auth=True),
                )
        except httpx.HTTPError as exc:
            raise PushFailed(str(exc)) from exc

        if r.status_code not in (200, 204):
            raise PushFailed(f"GitHub API error: {r.status_code}")

        return PushResult(
            mode="dispatch",
            durable=False,
            detail="Dispatched dictionary_update; a repository workflow must persist it",
        )


def build_transport(settings) -> Optional[GitHubSnapshotTransport]:
    """Transport from settings, or None when no repository is configured."""
    if not settings.github_owner or not settings.github_repo:
        return None
    repo = GitHubRepo(
        owner=settings.github_owner,
        repo=settings.github_repo,
        branch=settings.github_branch,
        path=settings.github_snapshot_path,
    )
    return GitHubSnapshotTransport(
        repo,
        token=settings.github_token,
        push_mode=settings.github_push_mode,
        timeout=settings.github_timeout_sec,
    )
