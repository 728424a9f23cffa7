"""Unit tests for API error handlers.

Error bodies follow {"error": {code, message, type, provider, details}}
with 404 for unresolvable containers, 503 for Docker outages and 500 for
configuration problems.
"""

from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.error_handlers import (
    ErrorDetail,
    ErrorResponse,
    build_error_response,
    extract_error_details,
    get_status_code_for_error,
    register_exception_handlers,
)
from src.core.exceptions import (
    ConfigurationError,
    ContainerNotFoundError,
    DockerUnavailableError,
    LocalEndpointsError,
    TagParseError,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def app_with_handlers() -> FastAPI:
    """Create a FastAPI app with exception handlers registered."""
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/test/not-found")
    async def not_found() -> dict[str, str]:
        raise ContainerNotFoundError(
            "No unique container", identifier="web", candidates=2
        )

    @app.get("/test/docker")
    async def docker_down() -> dict[str, str]:
        raise DockerUnavailableError("daemon down", operation="containers", retry_after_ms=3000)

    @app.get("/test/configuration")
    async def configuration() -> dict[str, str]:
        raise ConfigurationError("no endpoints container", setting="self_identifier")

    @app.get("/test/base")
    async def base() -> dict[str, str]:
        raise LocalEndpointsError("something odd")

    @app.get("/test/unexpected")
    async def unexpected() -> dict[str, str]:
        raise RuntimeError("kaboom")

    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


def _error(response: Any) -> dict[str, Any]:
    return response.json()["error"]


# =============================================================================
# Handler responses
# =============================================================================


class TestHandlers:
    """Test registered exception handlers end to end."""

    def test_container_not_found(self, client: TestClient) -> None:
        response = client.get("/test/not-found")

        assert response.status_code == 404
        error = _error(response)
        assert error["code"] == "CONTAINER_NOT_FOUND"
        assert error["type"] == "non_retriable"
        assert error["provider"] == "local-container-endpoints"
        assert error["details"] == {"identifier": "web", "candidates": 2}

    def test_docker_unavailable(self, client: TestClient) -> None:
        response = client.get("/test/docker")

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "3"
        error = _error(response)
        assert error["code"] == "DOCKER_UNAVAILABLE"
        assert error["type"] == "retriable"
        assert error["details"] == {"operation": "containers"}

    def test_configuration_error(self, client: TestClient) -> None:
        response = client.get("/test/configuration")

        assert response.status_code == 500
        assert _error(response)["details"] == {"setting": "self_identifier"}

    def test_base_error(self, client: TestClient) -> None:
        response = client.get("/test/base")

        assert response.status_code == 500
        assert _error(response)["code"] == "LOCAL_ENDPOINTS_ERROR"

    def test_unexpected_error(self, client: TestClient) -> None:
        response = client.get("/test/unexpected")

        assert response.status_code == 500
        error = _error(response)
        assert error["code"] == "LOCAL_ENDPOINTS_ERROR"
        assert "kaboom" in error["message"]


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    """Test status mapping and response building."""

    @pytest.mark.parametrize(
        ("error", "expected"),
        [
            (ContainerNotFoundError("x"), 404),
            (DockerUnavailableError("x"), 503),
            (ConfigurationError("x"), 500),
            (TagParseError("x"), 500),
            (ValueError("x"), 500),
        ],
    )
    def test_status_codes(self, error: Exception, expected: int) -> None:
        assert get_status_code_for_error(error) == expected

    def test_details_skip_none(self) -> None:
        error = ContainerNotFoundError("x", caller_ip="10.0.0.1")

        assert extract_error_details(error) == {"caller_ip": "10.0.0.1", "candidates": 0}

    def test_tag_parse_details(self) -> None:
        error = TagParseError("bad", entry="oops", setting="task_tags")

        response = build_error_response(error)

        assert isinstance(response, ErrorResponse)
        assert response.error.code == "TAG_PARSE_ERROR"
        assert response.error.details == {"setting": "task_tags", "entry": "oops"}

    def test_plain_exception_response(self) -> None:
        response = build_error_response(ValueError("plain"))

        assert response.error == ErrorDetail(
            code="LOCAL_ENDPOINTS_ERROR",
            message="plain",
            type="non_retriable",
            details=None,
        )
