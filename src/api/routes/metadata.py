"""Task metadata v3 API routes.

Every request resolves the calling container against a fresh Docker
snapshot: by the ``identifier`` path segment when present, otherwise by
the request's source address. The payload is then built for that
container.

Mounted under /v3 by src.main.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, Request, status
from starlette.concurrency import run_in_threadpool

from src.core.constants import DEFAULT_ENDPOINT_IP
from src.core.exceptions import ConfigurationError
from src.observability.tracing import traced_span
from src.services.resolver import Container, resolve


if TYPE_CHECKING:
    from src.services.docker_client import DockerSnapshotProvider
    from src.services.metadata import MetadataService


router = APIRouter(tags=["metadata"])


# =============================================================================
# Helper Functions
# =============================================================================


def get_caller_ip(request: Request) -> str | None:
    """Source address of the request, as seen by the server."""
    return request.client.host if request.client else None


def _get_docker(request: Request) -> DockerSnapshotProvider:
    provider: DockerSnapshotProvider | None = getattr(request.app.state, "docker", None)
    if provider is None:
        msg = "Docker snapshot provider not initialized"
        raise ConfigurationError(msg, setting="docker_base_url")
    return provider


def _get_metadata_service(request: Request) -> MetadataService:
    service: MetadataService | None = getattr(
        request.app.state, "metadata_service", None
    )
    if service is None:
        msg = "Metadata service not initialized"
        raise ConfigurationError(msg)
    return service


async def _resolve_request(
    request: Request,
    identifier: str | None,
    caller_ip: str | None,
) -> tuple[Container, list[Container]]:
    """Fetch a snapshot and resolve the requesting container in it.

    Returns:
        The resolved container and the snapshot it was found in.
    """
    provider = _get_docker(request)
    self_identifier: str | None = getattr(request.app.state, "self_identifier", None)
    endpoint_ip: str = getattr(request.app.state, "endpoint_ip", DEFAULT_ENDPOINT_IP)

    with traced_span("docker.snapshot") as span:
        containers = await run_in_threadpool(provider.snapshot)
        span.set_attribute("docker.containers", len(containers))

    with traced_span(
        "container.resolve", identifier=identifier, caller_ip=caller_ip
    ) as span:
        container = resolve(
            containers,
            identifier,
            caller_ip,
            self_identifier=self_identifier,
            endpoint_ip=endpoint_ip,
        )
        span.set_attribute("container.id", container.id)

    return container, containers


# =============================================================================
# Caller-IP Endpoints
# =============================================================================


@router.get("", status_code=status.HTTP_200_OK, summary="Metadata of the calling container")
async def caller_container_metadata(
    request: Request, caller_ip: str | None = Depends(get_caller_ip)
) -> dict[str, Any]:
    container, _ = await _resolve_request(request, None, caller_ip)
    return _get_metadata_service(request).container_metadata(container)


@router.get("/task", summary="Task metadata of the calling container")
async def caller_task_metadata(
    request: Request, caller_ip: str | None = Depends(get_caller_ip)
) -> dict[str, Any]:
    container, containers = await _resolve_request(request, None, caller_ip)
    return _get_metadata_service(request).task_metadata(container, containers)


@router.get("/stats", summary="Docker stats of the calling container")
async def caller_container_stats(
    request: Request, caller_ip: str | None = Depends(get_caller_ip)
) -> dict[str, Any]:
    container, _ = await _resolve_request(request, None, caller_ip)
    return await run_in_threadpool(_get_docker(request).stats, container)


@router.get("/task/stats", summary="Docker stats of the calling container's task")
async def caller_task_stats(
    request: Request, caller_ip: str | None = Depends(get_caller_ip)
) -> dict[str, Any]:
    container, containers = await _resolve_request(request, None, caller_ip)
    members = _get_metadata_service(request).task_containers(container, containers)
    return await run_in_threadpool(_get_docker(request).task_stats, members)


# =============================================================================
# Identifier Endpoints
# =============================================================================


@router.get("/containers/{identifier}", summary="Metadata of a container by ID or name")
async def container_metadata(request: Request, identifier: str) -> dict[str, Any]:
    container, _ = await _resolve_request(request, identifier, None)
    return _get_metadata_service(request).container_metadata(container)


@router.get("/containers/{identifier}/task", summary="Task metadata by container ID or name")
async def container_task_metadata(request: Request, identifier: str) -> dict[str, Any]:
    container, containers = await _resolve_request(request, identifier, None)
    return _get_metadata_service(request).task_metadata(container, containers)


@router.get("/containers/{identifier}/stats", summary="Docker stats by container ID or name")
async def container_stats(request: Request, identifier: str) -> dict[str, Any]:
    container, _ = await _resolve_request(request, identifier, None)
    return await run_in_threadpool(_get_docker(request).stats, container)


@router.get(
    "/containers/{identifier}/task/stats",
    summary="Task Docker stats by container ID or name",
)
async def container_task_stats(request: Request, identifier: str) -> dict[str, Any]:
    container, containers = await _resolve_request(request, identifier, None)
    members = _get_metadata_service(request).task_containers(container, containers)
    return await run_in_threadpool(_get_docker(request).task_stats, members)
