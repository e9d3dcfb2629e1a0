from lexi.core.sync_service import get_sync_service
from lexi.main import app


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_status_today_without_words(client):
    body = client.get("/status/today").json()

    assert body["stats"]["total"] == 0
    assert body["word_of_day"]["id"] is None
    assert body["sync"]["enabled"] is True


def test_status_today_prefers_words_still_being_learned(client):
    learned = client.post("/words", json={"word": "known"}).json()
    client.post(f"/words/{learned['id']}/toggle-mastered")
    client.post("/words", json={"word": "fresh", "definition": "new"})

    body = client.get("/status/today").json()

    assert body["word_of_day"]["word"] == "fresh"
    assert body["stats"]["mastered"] == 1


def test_theme_preference(client):
    assert client.get("/preferences/theme").json() == {"theme": "light"}

    assert client.post("/preferences/theme/toggle").json() == {"theme": "dark"}
    assert client.get("/preferences/theme").json() == {"theme": "dark"}

    assert client.put("/preferences/theme", json={"theme": "LIGHT"}).json() == {"theme": "light"}
    assert client.put("/preferences/theme", json={"theme": "sepia"}).status_code == 422


def test_notifications_feed_and_dismiss(client):
    client.post("/words", json={"word": "cat"})

    events = client.get("/notifications").json()
    assert len(events) == 1
    assert events[0]["level"] == "success"
    assert "cat" in events[0]["message"]

    assert client.get("/notifications", params={"after_id": events[0]["id"]}).json() == []

    dismissed = client.post(f"/notifications/{events[0]['id']}/dismiss").json()
    assert dismissed["dismissed_at"] is not None
    assert client.get("/notifications").json() == []

    assert client.post("/notifications/999/dismiss").status_code == 404


def test_sync_routes(client, transport):
    transport.words = [{"word": "dog", "updatedAt": "2024-01-01T00:00:00Z"}]
    transport.revision = "rev-9"

    pull = client.post("/sync/pull").json()
    assert pull["added"] == 1
    assert pull["revision"] == "rev-9"

    again = client.post("/sync/pull").json()
    assert again["unchanged"] is True

    run = client.post("/sync/run", params={"force": "true"}).json()
    assert run["skipped"] is False
    assert run["pull"]["unchanged"] is False
    assert run["push"]["attempted"] is False

    status = client.get("/sync/status").json()
    assert status["remote_revision"] == "rev-9"
    assert status["in_flight"] is False


def test_issue_link_needs_github_transport(client):
    assert client.get("/sync/issue-link").status_code == 404


def test_sync_disabled(client):
    app.dependency_overrides[get_sync_service] = lambda: None

    assert client.post("/sync/run").status_code == 503
    assert client.post("/sync/pull").status_code == 503
    status = client.get("/sync/status").json()
    assert status["enabled"] is False
    assert status["status"] == "disabled"

    # local edits still work and stay queued
    assert client.post("/words", json={"word": "cat"}).status_code == 201
    assert client.get("/sync/status").json()["pending_changes"] == 1
