"""HTTP tests for the identification API using FastAPI's TestClient."""

import json

import pytest
from fastapi.testclient import TestClient

from identification_server.app import create_app
from identification_server.config import ServerConfig
from identification_server.state import AppState, set_state
from identification_server.utils import format_sse

from conftest import FakeSearch, FakeVision, bttf_result, build_manager, delorean_analysis, fast_config, spaceship_analysis


def _parse_sse(body: str):
    events = []
    for frame in body.split("\n\n"):
        lines = frame.strip().splitlines()
        if not lines or lines[0].startswith(":"):
            continue
        event = lines[0][len("event: "):]
        data = json.loads(lines[1][len("data: "):])
        events.append((event, data))
    return events


class TestIdentifyRoutes:
    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        self.config = ServerConfig(upload_dir=tmp_path / "uploads", data_dir=tmp_path / "data", frame_store="memory")
        yield
        set_state(None)

    def _client(self, manager) -> TestClient:
        state = AppState(self.config, session_manager=manager)
        return TestClient(create_app(state))

    def test_start_and_stream_to_completion(self):
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch([bttf_result()]))
        with self._client(manager) as client:
            response = client.post("/api/identify/video-1")
            assert response.status_code == 200
            info = response.json()
            assert info["video_id"] == "video-1"
            assert info["stream_url"] == f"/api/identify/sessions/{info['session_id']}/stream"

            stream = client.get(info["stream_url"])
            assert stream.status_code == 200
            assert stream.headers["content-type"].startswith("text/event-stream")
            events = _parse_sse(stream.text)
            assert [name for name, _ in events] == ["chips", "candidates", "complete"]
            assert events[-1][1]["film_details"]["id"] == 105

            session = client.get(f"/api/identify/sessions/{info['session_id']}").json()
            assert session["status"] == "complete"
            assert session["candidates"][0]["catalog_id"] == "105"

    def test_unknown_video_is_404(self):
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch([bttf_result()]))
        with self._client(manager) as client:
            assert client.post("/api/identify/nope").status_code == 404

    def test_unknown_session_is_404(self):
        manager = build_manager(FakeVision(delorean_analysis()), FakeSearch([bttf_result()]))
        with self._client(manager) as client:
            assert client.get("/api/identify/sessions/nope").status_code == 404
            assert client.get("/api/identify/sessions/nope/stream").status_code == 404
            assert client.post("/api/identify/sessions/nope/cancel").status_code == 404
            response = client.post("/api/identify/sessions/nope/feedback", json={"chip": "1980s", "selected": True})
            assert response.status_code == 404

    def test_feedback_and_cancel(self):
        manager = build_manager(
            FakeVision(spaceship_analysis()),
            FakeSearch([bttf_result()]),
            config=fast_config(idle_wait_seconds=5.0),
        )
        with self._client(manager) as client:
            session_id = client.post("/api/identify/video-1").json()["session_id"]

            response = client.post(
                f"/api/identify/sessions/{session_id}/feedback", json={"chip": "1980s", "selected": True}
            )
            assert response.status_code == 200
            assert response.json()["feedback"] == {"1980s": True}

            invalid = client.post(f"/api/identify/sessions/{session_id}/feedback", json={"chip": "", "selected": True})
            assert invalid.status_code == 422

            assert client.post(f"/api/identify/sessions/{session_id}/cancel").status_code == 200
            events = _parse_sse(client.get(f"/api/identify/sessions/{session_id}/stream").text)
            assert events[-1] == ("cancelled", {"message": "Identification cancelled by user"})
            assert [name for name, _ in events].count("cancelled") == 1

    def test_unconfigured_providers_is_503(self):
        with TestClient(create_app(AppState(self.config))) as client:
            response = client.post("/api/identify/video-1")
            assert response.status_code == 503


class TestRootRoutes:
    @pytest.fixture(autouse=True)
    def setup(self, tmp_path):
        config = ServerConfig(upload_dir=tmp_path / "uploads", data_dir=tmp_path / "data", frame_store="memory")
        self.state = AppState(config)
        yield
        set_state(None)

    def test_root(self):
        with TestClient(create_app(self.state)) as client:
            body = client.get("/").json()
            assert body["name"] == "Film Identification API"
            assert body["status"] == "not_configured"
            assert body["sessions"] == {"total": 0, "active": 0}
            assert body["providers"]["tmdb"] is False

    def test_health(self):
        with TestClient(create_app(self.state)) as client:
            body = client.get("/api/health").json()
            assert body["status"] == "healthy"
            assert body["ready"] is False
            assert "films" in body["errors"]


class TestSseFraming:
    def test_format(self):
        assert format_sse("chips", {"a": 1}) == 'event: chips\ndata: {"a":1}\n\n'
