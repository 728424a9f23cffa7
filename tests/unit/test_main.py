"""Tests for main FastAPI application.

Tests verify:
- The app starts, builds its state and shuts down cleanly
- Malformed tag configuration aborts startup
- Request IDs are echoed back to the caller
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.core.exceptions import TagParseError
from tests.conftest import ENDPOINT_IP, ENDPOINTS_NAME


class TestAppInstance:
    """Test FastAPI app instance creation."""

    def test_app_is_fastapi_instance(self) -> None:
        from src.main import app

        assert isinstance(app, FastAPI)

    def test_app_title_and_version(self) -> None:
        from src import __version__
        from src.main import app

        assert app.title == "local-container-endpoints"
        assert app.version == __version__

    def test_routes_registered(self) -> None:
        from src.main import app

        paths = app.openapi()["paths"]

        assert "/health" in paths
        assert "/health/ready" in paths
        assert "/v3" in paths
        assert "/v3/task/stats" in paths
        assert "/v3/containers/{identifier}/task/stats" in paths


class TestAppLifespan:
    """Test FastAPI lifespan context manager."""

    @pytest.mark.usefixtures("mock_env")
    def test_state_initialized_on_startup(self) -> None:
        from src.main import app

        with TestClient(app):
            assert app.state.initialized is True
            assert app.state.self_identifier == ENDPOINTS_NAME
            assert app.state.endpoint_ip == ENDPOINT_IP
            service = app.state.metadata_service
            assert service.container_instance_tags == {
                "mitchell": "webb",
                "thats": "numberwang",
            }

        assert app.state.initialized is False

    def test_self_identifier_defaults_to_hostname(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        from src.main import app

        monkeypatch.delenv("ECS_LOCAL_SELF_IDENTIFIER", raising=False)
        monkeypatch.setattr("src.main.socket.gethostname", lambda: "abc123def456")

        with TestClient(app):
            assert app.state.self_identifier == "abc123def456"

    def test_malformed_tags_abort_startup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        from src.main import app

        monkeypatch.setenv("TASK_TAGS", "hello=goodbye,oops")

        with pytest.raises(TagParseError):
            with TestClient(app):
                pass


@pytest.mark.usefixtures("mock_env")
class TestRequestHandling:
    """Test middleware and liveness through the full app."""

    def test_health(self) -> None:
        from src.main import app

        with TestClient(app) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_request_id_echoed(self) -> None:
        from src.main import app

        with TestClient(app) as client:
            response = client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"

    def test_request_id_generated(self) -> None:
        from src.main import app

        with TestClient(app) as client:
            response = client.get("/health")

        assert len(response.headers["X-Request-ID"]) == 32

    def test_openapi_schema(self) -> None:
        from src.main import app

        with TestClient(app) as client:
            response = client.get("/openapi.json")

        assert response.status_code == 200
        assert "/v3/containers/{identifier}" in response.json()["paths"]
