"""pytest configuration and fixtures for local-container-endpoints tests.

Shared constants mirror a small compose setup: an endpoints container on
the metadata network plus a few application containers.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from src.core.config import get_settings
from src.core.logging import reset_logging


# =============================================================================
# Constants
# =============================================================================

ENDPOINTS_LONG_ID = "56771b9219b58c8b6a286830667b62475e79753db34a0b82a98efafb20718c0f9"
ENDPOINTS_SHORT_ID = ENDPOINTS_LONG_ID[:12]
LONG_ID_1 = "e18ab3d25b38c8b6a287831767b62475a79853dc38a0b92a98efabb20718c0d90"
SHORT_ID_1 = LONG_ID_1[:12]
LONG_ID_2 = "457129ed3bd03f1fc70125c3be7bcbee760d5edf092e32155a5c6a730cd32020"
LONG_ID_3 = "0756a2371cad1976b07954490660f07d240a6a6f52d17594ed691799915695f7"

ENDPOINTS_NAME = "endpoints"
CONTAINER_NAME_1 = "container1"
CONTAINER_NAME_2 = "container2-pudding"
CONTAINER_NAME_3 = "clyde-container3-dumpling"

ENDPOINT_IP = "169.254.170.2"
IP_ADDRESS_1 = "172.17.0.2"
IP_ADDRESS_2 = "172.17.0.3"
IP_ADDRESS_3 = "172.17.0.4"

METADATA_NETWORK = "metadata-network"
APP_NETWORK = "app-network"
PROJECT_NAME = "project"


# =============================================================================
# Markers
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (need a Docker daemon)")


# =============================================================================
# Isolation Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings_and_logging() -> Generator[None, None, None]:
    """Clear the cached Settings and logging state around every test."""
    get_settings.cache_clear()
    reset_logging()
    yield
    get_settings.cache_clear()
    reset_logging()


@pytest.fixture
def test_env_vars() -> dict[str, str]:
    """Environment for an app under test."""
    return {
        "ECS_LOCAL_LOG_LEVEL": "DEBUG",
        "ECS_LOCAL_SELF_IDENTIFIER": ENDPOINTS_NAME,
        "CONTAINER_INSTANCE_TAGS": "mitchell=webb,thats=numberwang",
        "TASK_TAGS": "hello=goodbye,get=back,come=together",
    }


@pytest.fixture
def mock_env(test_env_vars: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> None:
    """Set test environment variables."""
    for key, value in test_env_vars.items():
        monkeypatch.setenv(key, value)
