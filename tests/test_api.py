"""Tests for the HTTP API."""

import asyncio
import json

import pytest
from fastapi.responses import StreamingResponse
from fastapi.testclient import TestClient

from repo_mirror.api import create_app
from repo_mirror.api.app import status_for
from repo_mirror.api.routes import format_event, read_tree, snapshot_events
from repo_mirror.config import MirrorConfig
from repo_mirror.errors import (
    AuthError,
    InvalidPathError,
    MirrorError,
    NetworkError,
    NotFoundError,
    RemoteListError,
    RemoteWriteConflict,
)
from repo_mirror.hashing import compute_blob_token
from repo_mirror.service import MirrorService


@pytest.fixture
def client(service):
    with TestClient(create_app(service=service)) as client:
        yield client


class TestRead:
    """Test GET /api."""

    def test_snapshot(self, client):
        resp = client.get("/api")

        assert resp.status_code == 200
        body = resp.json()
        assert set(body) == {"tree", "fingerprints"}
        assert body["tree"]["type"] == "directory"
        assert [c["name"] for c in body["tree"]["children"]] == ["README.md", "docs", "data", "config.yaml"]
        assert body["fingerprints"]["docs/a.txt"] == compute_blob_token(b"alpha")

    def test_camel_case_fields(self, client):
        readme = client.get("/api").json()["tree"]["children"][0]

        assert readme["contentIdentity"] == compute_blob_token(b"# crime\n")
        assert "content_identity" not in readme

    def test_structured_content_is_parsed(self, client):
        data = client.get("/api").json()["tree"]["children"][2]
        cases = data["children"][0]

        assert cases["content"] == {"open": 3, "closed": [1, 2]}

    def test_read_refreshes_cache(self, client, service):
        client.get("/api")
        assert service.context.snapshot is not None

    def test_listing_failure_is_500(self, client, store):
        store.fail_list.add("")

        resp = client.get("/api")

        assert resp.status_code == 500
        assert "Cannot list directory" in resp.json()["error"]


class TestSave:
    """Test POST and PUT without an action."""

    def test_create(self, client):
        resp = client.post("/api", json={"path": "docs/b.txt", "content": "bravo"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["action"] == "save"
        assert body["created"] is True
        assert body["synced"] is True
        assert body["versionToken"] == compute_blob_token(b"bravo")
        assert "docs/b.txt" in client.get("/api").json()["fingerprints"]

    def test_put_updates(self, client, store):
        resp = client.put("/api", json={"path": "docs/a.txt", "content": "alpha 2", "message": "edit"})

        assert resp.status_code == 200
        assert resp.json()["created"] is False
        assert store.files["docs/a.txt"] == b"alpha 2"

    def test_structured_content(self, client, store):
        client.post("/api", json={"path": "data/new.json", "content": {"x": 1}})
        assert json.loads(store.files["data/new.json"]) == {"x": 1}

    @pytest.mark.parametrize("body", [
        {"content": "x"},
        {"path": "a.txt"},
        {"path": "", "content": "x"},
    ])
    def test_missing_fields(self, client, body):
        resp = client.post("/api", json=body)

        assert resp.status_code == 400
        assert "required" in resp.json()["error"]

    def test_unsafe_path(self, client, store):
        resp = client.post("/api", json={"path": "../escape", "content": "x"})

        assert resp.status_code == 400
        assert "Unsafe path" in resp.json()["error"]
        assert store.writes == []

    def test_conflict(self, client):
        resp = client.post("/api", json={"path": "docs", "content": "x"})

        assert resp.status_code == 409
        assert "Write conflict" in resp.json()["error"]

    def test_non_json_body(self, client):
        resp = client.post("/api", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400


class TestMove:
    """Test PUT with action=move."""

    def test_move(self, client, store):
        resp = client.put("/api", json={"action": "move", "path": "docs/a.txt", "newPath": "docs/z.txt"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["action"] == "move"
        assert body["newPath"] == "docs/z.txt"
        fingerprints = client.get("/api").json()["fingerprints"]
        assert "docs/a.txt" not in fingerprints
        assert "docs/z.txt" in fingerprints

    def test_move_missing_source(self, client, store):
        resp = client.put("/api", json={"action": "move", "path": "nope.txt", "newPath": "x.txt"})

        assert resp.status_code == 404
        assert resp.json()["error"] == "File not found: nope.txt"
        assert store.writes == []

    def test_move_requires_new_path(self, client):
        resp = client.put("/api", json={"action": "move", "path": "docs/a.txt"})

        assert resp.status_code == 400
        assert "newPath" in resp.json()["error"]

    def test_unknown_action(self, client):
        resp = client.put("/api", json={"action": "copy", "path": "a", "newPath": "b"})

        assert resp.status_code == 400
        assert "Unknown action" in resp.json()["error"]


class TestDelete:
    """Test DELETE /api."""

    def test_delete(self, client, store):
        resp = client.request("DELETE", "/api", json={"path": "docs/a.txt"})

        assert resp.status_code == 200
        assert resp.json()["action"] == "remove"
        assert "docs/a.txt" not in store.files

    def test_delete_missing(self, client):
        resp = client.request("DELETE", "/api", json={"path": "nope.txt"})

        assert resp.status_code == 404
        assert resp.json()["error"] == "File not found: nope.txt"

    def test_delete_requires_path(self, client):
        resp = client.request("DELETE", "/api", json={})
        assert resp.status_code == 400


class TestHealth:
    """Test GET /health."""

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert body["provider"] == "memory"
        assert body["repository"] is None
        assert body["subscribers"] == 0
        assert body["poller_running"] is False

    def test_cors_preflight(self, client):
        resp = client.options("/api", headers={
            "Origin": "http://localhost:3000",
            "Access-Control-Request-Method": "PUT",
        })

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] in ("*", "http://localhost:3000")


class TestErrorMapping:
    """Test error -> status code mapping."""

    @pytest.mark.parametrize("exc,status", [
        (InvalidPathError("bad"), 400),
        (NotFoundError("a"), 404),
        (RemoteWriteConflict("a", "tok"), 409),
        (AuthError("denied"), 502),
        (NetworkError("down"), 502),
        (RemoteListError("", "boom"), 500),
        (MirrorError("other"), 500),
    ])
    def test_status_for(self, exc, status):
        assert status_for(exc) == status


class TestStream:
    """Test the server-sent event stream."""

    def test_format_event(self):
        assert format_event('{"a":1}') == 'event: snapshot\ndata: {"a":1}\n\n'

    def test_stream_response(self, service):
        async def run():
            await service.read_snapshot()
            response = await read_tree(stream=True, service=service)
            first = await response.body_iterator.__anext__()
            running = service.scheduler.running
            subscribers = service.broadcaster.subscriber_count
            await response.body_iterator.aclose()
            remaining = service.broadcaster.subscriber_count
            await service.aclose()
            return response, first, running, subscribers, remaining

        response, first, running, subscribers, remaining = asyncio.run(run())

        assert isinstance(response, StreamingResponse)
        assert response.media_type == "text/event-stream"
        assert first.startswith("event: snapshot\ndata: ")
        payload = json.loads(first.split("data: ", 1)[1])
        assert "docs/a.txt" in payload["fingerprints"]
        assert running is True
        assert subscribers == 1
        assert remaining == 0

    def test_events_follow_mutations(self, service):
        async def run():
            subscriber = await service.subscribe()
            events = snapshot_events(service, subscriber)
            await service.save("docs/b.txt", "bravo")
            seen = []
            async for event in events:
                seen.append(json.loads(event.split("data: ", 1)[1]))
                if "docs/b.txt" in seen[-1]["fingerprints"]:
                    break
            await events.aclose()
            await service.aclose()
            return seen

        seen = asyncio.run(run())
        assert "docs/b.txt" in seen[-1]["fingerprints"]

    def test_events_end_when_subscriber_closes(self, service):
        async def run():
            subscriber = await service.subscribe()
            subscriber.close()
            events = [event async for event in snapshot_events(service, subscriber)]
            await service.aclose()
            return events

        assert asyncio.run(run()) == []
        assert service.broadcaster.subscriber_count == 0

    def test_stream_ends_when_client_falls_behind(self, store):
        """A stream whose queue overflows is dropped and finishes."""
        config = MirrorConfig(provider="memory", poll_interval=60, subscriber_queue_size=1)
        service = MirrorService(config, store=store)

        async def run():
            subscriber = await service.subscribe()
            await service.save("docs/b.txt", "bravo")
            await service.save("docs/c.txt", "charlie")

            async def collect():
                return [event async for event in snapshot_events(service, subscriber)]

            events = await asyncio.wait_for(collect(), timeout=1)
            await service.aclose()
            return subscriber, events

        subscriber, events = asyncio.run(run())

        assert subscriber.closed is True
        assert len(events) == 1
        assert events[0].startswith("event: snapshot\n")
        assert service.broadcaster.subscriber_count == 0
