"""Docker snapshot provider.

Read-only access to the local Docker daemon: a normalized list of running
containers per request, per-container stats, and a liveness ping for the
readiness probe.

The SDK client is created lazily on first use so that the service starts
(and its tests run) without a reachable daemon. Daemon and transport
failures surface as DockerUnavailableError.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from typing import Any

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from src.core.exceptions import DockerUnavailableError
from src.core.logging import get_logger
from src.services.resolver import Container, normalize_snapshot


logger = get_logger(__name__)

_DOCKER_ERRORS = (DockerException, RequestException)


class DockerSnapshotProvider:
    """Lists containers and reads stats from the Docker daemon.

    Attributes:
        base_url: Daemon URL, or None to use the SDK environment
            (DOCKER_HOST, DOCKER_TLS_VERIFY, ...).
        timeout: API timeout in seconds.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int = 10,
        client: docker.DockerClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._client = client
        self._client_lock = threading.Lock()

    def _get_client(self) -> docker.DockerClient:
        with self._client_lock:
            if self._client is None:
                try:
                    if self.base_url:
                        self._client = docker.DockerClient(
                            base_url=self.base_url, timeout=self.timeout
                        )
                    else:
                        self._client = docker.from_env(timeout=self.timeout)
                except _DOCKER_ERRORS as exc:
                    logger.warning(
                        "Failed to create Docker client",
                        base_url=self.base_url,
                        error=str(exc),
                    )
                    msg = f"Docker daemon unavailable: {exc}"
                    raise DockerUnavailableError(msg, operation="connect") from exc
            return self._client

    def snapshot(self) -> list[Container]:
        """Normalized snapshot of the running containers.

        Raises:
            DockerUnavailableError: The daemon could not be queried.
        """
        client = self._get_client()
        try:
            raw_containers = client.api.containers()
        except _DOCKER_ERRORS as exc:
            logger.warning("Failed to list containers", error=str(exc))
            msg = f"Failed to list containers: {exc}"
            raise DockerUnavailableError(msg, operation="containers") from exc

        containers = normalize_snapshot(raw_containers)
        logger.debug("Fetched container snapshot", containers=len(containers))
        return containers

    def stats(self, container: Container) -> dict[str, Any]:
        """One-shot Docker stats for a container.

        Raises:
            DockerUnavailableError: The daemon could not be queried.
        """
        client = self._get_client()
        try:
            return client.api.stats(container.id, stream=False)
        except _DOCKER_ERRORS as exc:
            logger.warning(
                "Failed to read container stats",
                container_id=container.id,
                error=str(exc),
            )
            msg = f"Failed to read stats for {container.short_id}: {exc}"
            raise DockerUnavailableError(msg, operation="stats") from exc

    def task_stats(self, containers: Sequence[Container]) -> dict[str, dict[str, Any]]:
        """Stats for several containers keyed by full container ID."""
        return {container.id: self.stats(container) for container in containers}

    def ping(self) -> bool:
        """True when the daemon answers; never raises."""
        try:
            return bool(self._get_client().api.ping())
        except DockerUnavailableError:
            return False
        except _DOCKER_ERRORS as exc:
            logger.warning("Docker ping failed", error=str(exc))
            return False

    def close(self) -> None:
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None
