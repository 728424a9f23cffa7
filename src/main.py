"""FastAPI application entrypoint for local-container-endpoints.

- configure_logging() and the metadata service are set up once in the
  lifespan; malformed tag configuration aborts startup.
- Every request gets a request ID and its caller IP bound to the logging
  context.
- Tracing middleware is mounted only when enabled in settings.
"""

import socket
import uuid
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response

from src import __version__
from src.api.error_handlers import register_exception_handlers
from src.api.routes.health import router as health_router
from src.api.routes.metadata import router as metadata_router
from src.core.config import get_settings
from src.core.exceptions import TagParseError
from src.core.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from src.observability.tracing import TracingMiddleware, setup_tracing, shutdown_tracing
from src.services.docker_client import DockerSnapshotProvider
from src.services.metadata import MetadataService


# =============================================================================
# Application Metadata
# =============================================================================
APP_NAME = "local-container-endpoints"
APP_DESCRIPTION = "ECS container metadata endpoints for local Docker containers"
APP_VERSION = __version__
REQUEST_ID_HEADER = "X-Request-ID"


# =============================================================================
# Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build process-wide state on startup and release it on shutdown.

    Raises:
        TagParseError: Tag configuration is malformed; the service must
            not start serving.
    """
    settings = get_settings()

    configure_logging(level=settings.log_level)
    logger = get_logger(__name__)

    try:
        metadata_service = MetadataService.from_settings(settings)
    except TagParseError as exc:
        logger.error(
            "Invalid tag configuration",
            setting=exc.setting,
            entry=exc.entry,
        )
        raise

    docker_provider = DockerSnapshotProvider(
        base_url=settings.docker_base_url,
        timeout=settings.docker_timeout,
    )

    app.state.metadata_service = metadata_service
    app.state.docker = docker_provider
    # Docker sets a container's hostname to its short ID
    app.state.self_identifier = settings.self_identifier or socket.gethostname()
    app.state.endpoint_ip = settings.endpoint_ip
    app.state.initialized = True

    logger.info(
        "Application starting",
        service=APP_NAME,
        version=APP_VERSION,
        environment=settings.environment,
        port=settings.port,
        self_identifier=app.state.self_identifier,
        endpoint_ip=settings.endpoint_ip,
    )

    yield

    logger.info("Application shutting down", service=APP_NAME)
    docker_provider.close()
    shutdown_tracing()
    app.state.initialized = False


# =============================================================================
# FastAPI Application Instance
# =============================================================================
settings = get_settings()

app = FastAPI(
    title=APP_NAME,
    description=APP_DESCRIPTION,
    version=APP_VERSION,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)


@app.middleware("http")
async def request_context_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Bind request ID and caller IP for logging; echo the request ID."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    caller_ip = request.client.host if request.client else None
    bind_request_context(request_id, caller_ip)
    try:
        response = await call_next(request)
    finally:
        clear_request_context()
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


if settings.tracing_enabled:
    setup_tracing(service_name=settings.service_name, otlp_endpoint=settings.otlp_endpoint)
    app.add_middleware(TracingMiddleware, exclude_paths=["/health", "/health/ready"])


# =============================================================================
# Routers and Exception Handlers
# =============================================================================
app.include_router(health_router)
app.include_router(metadata_router, prefix="/v3")

register_exception_handlers(app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
