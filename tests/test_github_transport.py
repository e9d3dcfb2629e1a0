import asyncio
import base64
import json
from types import SimpleNamespace
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from lexi.integrations.github import (
    GitHubRepo,
    GitHubSnapshotTransport,
    PushFailed,
    PushNotConfigured,
    build_transport,
)

REPO = GitHubRepo(owner="alice", repo="words", branch="main", path="dictionary.json")
SNAPSHOT = {
    "words": [{"word": "cat"}, {"word": "dog"}],
    "metadata": {"lastSync": "2024-07-01T12:00:00Z", "totalWords": 2, "version": "1.0"},
}


def make_transport(handler, **kwargs):
    kwargs.setdefault("token", "secret")
    return GitHubSnapshotTransport(
        REPO,
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def test_repo_urls():
    assert REPO.raw_url == "https://raw.githubusercontent.com/alice/words/main/dictionary.json"
    assert REPO.contents_url == "https://api.github.com/repos/alice/words/contents/dictionary.json"
    assert REPO.dispatch_url == "https://api.github.com/repos/alice/words/dispatches"


def test_fetch_snapshot():
    def handler(request):
        assert str(request.url) == REPO.raw_url
        return httpx.Response(200, json=SNAPSHOT)

    snapshot = asyncio.run(make_transport(handler).fetch_snapshot())

    assert snapshot.words == SNAPSHOT["words"]
    assert snapshot.metadata["totalWords"] == 2


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="server error"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"metadata": {}}),
    ],
)
def test_fetch_snapshot_unusable(response):
    snapshot = asyncio.run(make_transport(lambda request: response).fetch_snapshot())

    assert snapshot is None


def test_fetch_snapshot_network_error():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    assert asyncio.run(make_transport(handler).fetch_snapshot()) is None


def test_latest_revision():
    def handler(request):
        assert request.url.path == "/repos/alice/words/commits"
        assert request.url.params["path"] == "dictionary.json"
        return httpx.Response(200, json=[{"sha": "abc123"}])

    assert asyncio.run(make_transport(handler).latest_revision()) == "abc123"


def test_latest_revision_unavailable():
    transport = make_transport(lambda request: httpx.Response(403, json={"message": "rate limited"}))

    assert asyncio.run(transport.latest_revision()) is None


def test_contents_push_updates_existing_file():
    seen = {}

    def handler(request):
        assert request.headers["Authorization"] == "Bearer secret"
        if request.method == "GET":
            assert request.url.params["ref"] == "main"
            return httpx.Response(200, json={"sha": "old-sha"})
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"content": {"sha": "new-sha"}})

    result = asyncio.run(make_transport(handler).push_snapshot(SNAPSHOT))

    assert result.mode == "contents"
    assert result.durable is True
    body = seen["body"]
    assert body["sha"] == "old-sha"
    assert body["branch"] == "main"
    assert body["message"] == "Update dictionary: 2 words"
    assert json.loads(base64.b64decode(body["content"])) == SNAPSHOT


def test_contents_push_creates_missing_file():
    seen = {}

    def handler(request):
        if request.method == "GET":
            return httpx.Response(404, json={"message": "Not Found"})
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={})

    result = asyncio.run(make_transport(handler).push_snapshot(SNAPSHOT))

    assert result.durable is True
    assert "sha" not in seen["body"]


def test_contents_push_rejected():
    def handler(request):
        if request.method == "GET":
            return httpx.Response(200, json={"sha": "old-sha"})
        return httpx.Response(409, json={"message": "conflict"})

    with pytest.raises(PushFailed):
        asyncio.run(make_transport(handler).push_snapshot(SNAPSHOT))


def test_contents_push_needs_token():
    def handler(request):
        raise AssertionError("no request expected")

    with pytest.raises(PushNotConfigured):
        asyncio.run(make_transport(handler, token=None).push_snapshot(SNAPSHOT))


def test_dispatch_push_is_not_durable():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(204)

    result = asyncio.run(make_transport(handler, push_mode="dispatch").push_snapshot(SNAPSHOT))

    assert result.mode == "dispatch"
    assert result.durable is False
    assert seen["url"] == REPO.dispatch_url
    assert seen["body"]["event_type"] == "dictionary_update"
    assert seen["body"]["client_payload"]["word_count"] == 2


def test_issue_push_builds_prefilled_link():
    def handler(request):
        raise AssertionError("no request expected")

    result = asyncio.run(make_transport(handler, token=None, push_mode="issue").push_snapshot(SNAPSHOT))

    assert result.mode == "issue"
    assert result.durable is False
    parts = urlsplit(result.url)
    assert parts.netloc == "github.com"
    assert parts.path == "/alice/words/issues/new"
    query = parse_qs(parts.query)
    assert query["title"][0].startswith("[DICT-SYNC] ")
    assert query["title"][0].endswith(" - 2 words")
    assert query["labels"] == ["dictionary-sync,auto-sync"]
    assert '"word": "cat"' in query["body"][0]


def test_unknown_push_mode():
    with pytest.raises(ValueError):
        GitHubSnapshotTransport(REPO, push_mode="email")


def test_build_transport_from_settings():
    base = dict(
        github_owner=None,
        github_repo=None,
        github_branch="main",
        github_snapshot_path="dictionary.json",
        github_token=None,
        github_push_mode="issue",
        github_timeout_sec=5.0,
    )
    assert build_transport(SimpleNamespace(**base)) is None

    transport = build_transport(SimpleNamespace(**dict(base, github_owner="alice", github_repo="words")))
    assert transport.repo.raw_url == REPO.raw_url
    assert transport.push_mode == "issue"


def test_fetch_snapshot_missing_file():
    transport = make_transport(lambda request: httpx.Response(404, text="404: Not Found"))

    snapshot = asyncio.run(transport.fetch_snapshot())

    assert snapshot is not None
    assert snapshot.exists is False
    assert snapshot.words == []


def test_fetch_snapshot_at_revision_reads_that_commit():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, json=SNAPSHOT)

    snapshot = asyncio.run(make_transport(handler).fetch_snapshot("abc123"))

    assert snapshot.exists is True
    assert seen == ["https://raw.githubusercontent.com/alice/words/abc123/dictionary.json"]
