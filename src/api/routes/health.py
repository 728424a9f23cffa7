"""Health check API routes for local-container-endpoints.

Liveness (/health) always answers while the process is up; readiness
(/health/ready) additionally requires the metadata service to be built
and the Docker daemon to answer a ping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.concurrency import run_in_threadpool

from src import __version__
from src.core.constants import DEFAULT_SERVICE_NAME


if TYPE_CHECKING:
    from src.services.docker_client import DockerSnapshotProvider


# =============================================================================
# Constants
# =============================================================================

STATUS_OK = "ok"
STATUS_READY = "ready"
STATUS_NOT_READY = "not_ready"
REASON_NOT_INITIALIZED = "Metadata service not initialized"
REASON_DOCKER_UNREACHABLE = "Docker daemon unreachable"


# =============================================================================
# Response Models
# =============================================================================


class HealthResponse(BaseModel):
    """Response model for /health liveness endpoint."""

    status: str = Field(
        default=STATUS_OK,
        description="Service health status",
        examples=["ok"],
    )
    service: str = Field(
        default=DEFAULT_SERVICE_NAME,
        description="Service name",
        examples=["local-container-endpoints"],
    )
    version: str = Field(
        default=__version__,
        description="Service version",
        examples=["0.1.0"],
    )


class ReadinessResponse(BaseModel):
    """Response model for /health/ready readiness endpoint."""

    status: str = Field(
        description="Readiness status",
        examples=["ready", "not_ready"],
    )
    docker: bool = Field(
        default=False,
        description="Whether the Docker daemon answered a ping",
    )
    reason: str | None = Field(
        default=None,
        description="Reason for not ready status",
        examples=[REASON_DOCKER_UNREACHABLE],
    )


# =============================================================================
# Router
# =============================================================================

router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    """Liveness probe endpoint."""
    return HealthResponse()


@router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    responses={
        200: {"description": "Service is ready", "model": ReadinessResponse},
        503: {"description": "Service is not ready", "model": ReadinessResponse},
    },
    summary="Readiness check",
)
async def readiness_check(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Args:
        request: FastAPI request to access app state.

    Returns:
        200 when the metadata service exists and Docker answers, else 503.
    """
    docker_provider: DockerSnapshotProvider | None = getattr(
        request.app.state, "docker", None
    )
    metadata_service = getattr(request.app.state, "metadata_service", None)

    if docker_provider is None or metadata_service is None:
        response = ReadinessResponse(
            status=STATUS_NOT_READY,
            reason=REASON_NOT_INITIALIZED,
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(exclude_none=True),
        )

    if not await run_in_threadpool(docker_provider.ping):
        response = ReadinessResponse(
            status=STATUS_NOT_READY,
            reason=REASON_DOCKER_UNREACHABLE,
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=response.model_dump(exclude_none=True),
        )

    response = ReadinessResponse(status=STATUS_READY, docker=True)
    return JSONResponse(
        status_code=status.HTTP_200_OK,
        content=response.model_dump(exclude_none=True),
    )
