"""Error handlers for FastAPI exception handling.

Error Response Schema:
{
    "error": {
        "code": "ERROR_CODE",
        "message": "Human-readable message",
        "type": "retriable|non_retriable",
        "provider": "local-container-endpoints",
        "details": {...}
    }
}
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from src.core.exceptions import (
    ConfigurationError,
    ContainerNotFoundError,
    DockerUnavailableError,
    ErrorCode,
    LocalEndpointsError,
    NonRetriableError,
    RetriableError,
)
from src.core.logging import get_logger


logger = get_logger(__name__)

PROVIDER = "local-container-endpoints"


# =============================================================================
# Error Response Models (Pydantic)
# =============================================================================


class ErrorDetail(BaseModel):
    """Error detail schema.

    Attributes:
        code: Machine-readable error code.
        message: Human-readable error message.
        type: Error type (retriable or non_retriable).
        provider: Service that generated the error.
        details: Additional error-specific information.
    """

    code: str
    message: str
    type: str
    provider: str = PROVIDER
    details: dict[str, Any] | None = None


class ErrorResponse(BaseModel):
    """Error response wrapper."""

    error: ErrorDetail


# =============================================================================
# Status Code Mapping
# =============================================================================


def get_status_code_for_error(error: Exception) -> int:
    """Determine HTTP status code based on exception type."""
    if isinstance(error, ContainerNotFoundError):
        return 404
    if isinstance(error, RetriableError):
        return 503
    return 500


# =============================================================================
# Error Details Extraction
# =============================================================================

_DETAIL_ATTRS = (
    "identifier",
    "caller_ip",
    "candidates",
    "operation",
    "setting",
    "entry",
)


def extract_error_details(error: Exception) -> dict[str, Any]:
    """Collect the non-None detail attributes an exception carries."""
    details: dict[str, Any] = {}
    for attr in _DETAIL_ATTRS:
        value = getattr(error, attr, None)
        if value is not None:
            details[attr] = value
    return details


def build_error_response(
    error: Exception,
    error_type: str = "non_retriable",
) -> ErrorResponse:
    """Build a standardized error response.

    Args:
        error: The exception that occurred.
        error_type: Either "retriable" or "non_retriable".
    """
    code = getattr(error, "error_code", ErrorCode.LOCAL_ENDPOINTS_ERROR.value)
    message = getattr(error, "message", None) or str(error)
    details = extract_error_details(error)

    return ErrorResponse(
        error=ErrorDetail(
            code=code,
            message=message,
            type=error_type,
            provider=PROVIDER,
            details=details or None,
        )
    )


# =============================================================================
# Exception Handlers
# =============================================================================


async def retriable_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle RetriableError exceptions with a Retry-After header."""
    if not isinstance(exc, RetriableError):
        return generic_error_handler(_request, exc)

    response = build_error_response(exc, "retriable")
    retry_after_seconds = max(exc.retry_after_ms // 1000, 1)

    return JSONResponse(
        status_code=get_status_code_for_error(exc),
        content=response.model_dump(),
        headers={"Retry-After": str(retry_after_seconds)},
    )


async def non_retriable_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle NonRetriableError exceptions.

    Resolution failures are expected traffic (a caller outside the task
    network, a stale identifier) and are logged at info.
    """
    if not isinstance(exc, NonRetriableError):
        return generic_error_handler(_request, exc)

    if isinstance(exc, ContainerNotFoundError):
        logger.info("Container resolution failed", error=exc.message, candidates=exc.candidates)
    elif isinstance(exc, ConfigurationError):
        logger.error("Configuration error while serving request", error=exc.message)

    response = build_error_response(exc, "non_retriable")
    return JSONResponse(
        status_code=get_status_code_for_error(exc),
        content=response.model_dump(),
    )


async def local_endpoints_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle any other LocalEndpointsError."""
    if isinstance(exc, RetriableError):
        return await retriable_error_handler(_request, exc)
    if isinstance(exc, NonRetriableError):
        return await non_retriable_error_handler(_request, exc)
    if not isinstance(exc, LocalEndpointsError):
        return generic_error_handler(_request, exc)

    response = build_error_response(exc, "non_retriable")
    return JSONResponse(
        status_code=get_status_code_for_error(exc),
        content=response.model_dump(),
    )


def generic_error_handler(
    _request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle unexpected exceptions with a 500."""
    logger.error("Unhandled error", error=str(exc), error_type=type(exc).__name__)
    response = ErrorResponse(
        error=ErrorDetail(
            code=ErrorCode.LOCAL_ENDPOINTS_ERROR.value,
            message=f"Internal server error: {exc!s}",
            type="non_retriable",
            provider=PROVIDER,
            details=None,
        )
    )

    return JSONResponse(
        status_code=500,
        content=response.model_dump(),
    )


# =============================================================================
# Handler Registration
# =============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers, most specific first."""
    app.add_exception_handler(DockerUnavailableError, retriable_error_handler)
    app.add_exception_handler(ContainerNotFoundError, non_retriable_error_handler)
    app.add_exception_handler(ConfigurationError, non_retriable_error_handler)

    app.add_exception_handler(RetriableError, retriable_error_handler)
    app.add_exception_handler(NonRetriableError, non_retriable_error_handler)
    app.add_exception_handler(LocalEndpointsError, local_endpoints_error_handler)

    app.add_exception_handler(Exception, generic_error_handler)
