"""
Tests for the dashboard FastAPI application.
"""

from contextlib import asynccontextmanager
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from beads_bridge.core.dashboard.api.app import create_app, event_stream
from beads_bridge.core.dashboard.broadcaster import Broadcaster, QueueSubscriber
from beads_bridge.core.dashboard.state import IssueState, LiveStateBackend


@pytest.fixture
def backend():
    return LiveStateBackend()


@pytest.fixture
def client(backend):
    return TestClient(create_app(backend))


# ==============================================================================
# HTTP endpoints
# ==============================================================================


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestState:
    """GET /api/state/{issue_id}."""

    def test_returns_snapshot(self, client, backend):
        backend.update_state("e1", IssueState(root_id="e1", diagram="graph TD"))

        response = client.get("/api/state/e1")

        assert response.status_code == 200
        data = response.json()
        assert data["rootId"] == "e1"
        assert data["diagram"] == "graph TD"
        assert data["metrics"]["inProgress"] == 0

    def test_unknown_issue(self, client):
        response = client.get("/api/state/nope")
        assert response.status_code == 404
        body = response.json()
        assert body["error_code"] == "NOT_FOUND"
        assert "nope" in body["message"]


class TestAppWiring:
    """Broadcaster attachment and lifespan."""

    def test_attaches_broadcaster_to_backend(self, backend):
        broadcaster = Broadcaster()
        app = create_app(backend, broadcaster)
        assert backend.broadcaster is broadcaster
        assert app.state.broadcaster is broadcaster

    def test_reuses_backend_broadcaster(self):
        broadcaster = Broadcaster()
        app = create_app(LiveStateBackend(broadcaster=broadcaster))
        assert app.state.broadcaster is broadcaster

    def test_lifespan_runs(self, backend):
        events = []

        @asynccontextmanager
        async def lifespan(_):
            events.append("start")
            yield
            events.append("stop")

        with TestClient(create_app(backend, lifespan=lifespan)) as client:
            assert client.get("/health").status_code == 200
        assert events == ["start", "stop"]

    def test_cors_headers(self, client):
        response = client.get("/health", headers={"Origin": "http://localhost:5173"})
        assert response.headers["access-control-allow-origin"] == "http://localhost:5173"


# ==============================================================================
# Server-sent events
# ==============================================================================


class OneShotSubscriber(QueueSubscriber):
    """Closes itself after the first envelope so the stream ends."""

    def send(self, envelope):
        super().send(envelope)
        self.close()


class TestEvents:
    """GET /api/events and the underlying generator."""

    def test_stream_starts_with_connected(self, client):
        with patch("beads_bridge.core.dashboard.api.app.QueueSubscriber", OneShotSubscriber):
            response = client.get("/api/events")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.text == 'data: {"type": "connected"}\n\n'

    @pytest.mark.asyncio
    async def test_event_stream_delivers_updates(self):
        broadcaster = Broadcaster()
        subscriber = QueueSubscriber()
        stream = event_stream(broadcaster, subscriber)

        assert await stream.__anext__() == 'data: {"type": "connected"}\n\n'
        assert broadcaster.subscriber_count == 1

        broadcaster.broadcast({"type": "update", "issueId": "e1", "data": IssueState(root_id="e1")})
        frame = await stream.__anext__()
        assert frame.startswith('data: {"type": "update", "issueId": "e1"')
        assert '"rootId": "e1"' in frame

        broadcaster.close_all()
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_client_disconnect_unsubscribes(self):
        broadcaster = Broadcaster()
        stream = event_stream(broadcaster, QueueSubscriber())

        await stream.__anext__()
        await stream.aclose()

        assert broadcaster.subscriber_count == 0
