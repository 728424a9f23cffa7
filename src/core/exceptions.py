"""Custom exceptions for local-container-endpoints.

Exception Hierarchy:
    LocalEndpointsError (base)
    ├── RetriableError (transient errors)
    │   └── DockerUnavailableError
    └── NonRetriableError (permanent errors)
        ├── ContainerNotFoundError
        └── ConfigurationError
            └── TagParseError

Container resolution reports "no match" and "more than one match" through
the same ContainerNotFoundError; callers only learn that the requesting
container could not be uniquely identified.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


# =============================================================================
# Error Codes Enum
# =============================================================================


class ErrorCode(str, Enum):
    """Machine-readable codes used in API error bodies and logs."""

    # Base error
    LOCAL_ENDPOINTS_ERROR = "LOCAL_ENDPOINTS_ERROR"

    # Retriable errors
    DOCKER_UNAVAILABLE = "DOCKER_UNAVAILABLE"

    # Non-retriable errors
    CONTAINER_NOT_FOUND = "CONTAINER_NOT_FOUND"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    TAG_PARSE_ERROR = "TAG_PARSE_ERROR"


# =============================================================================
# Base Exception
# =============================================================================


class LocalEndpointsError(Exception):
    """Base exception for all local-container-endpoints errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code from ErrorCode enum.
    """

    def __init__(
        self,
        message: str,
        error_code: str | ErrorCode = ErrorCode.LOCAL_ENDPOINTS_ERROR,
        **kwargs: Any,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes to set on the exception.
        """
        super().__init__(message)
        self.message = message
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )

        for key, value in kwargs.items():
            setattr(self, key, value)


# =============================================================================
# Retriable / Non-Retriable Bases
# =============================================================================


class RetriableError(LocalEndpointsError):
    """Transient failure; a fresh request may succeed.

    Attributes:
        retry_after_ms: Suggested retry delay in milliseconds.
    """

    def __init__(
        self,
        message: str,
        retry_after_ms: int = 1000,
        error_code: str | ErrorCode = ErrorCode.LOCAL_ENDPOINTS_ERROR,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, error_code, **kwargs)
        self.retry_after_ms = retry_after_ms


class NonRetriableError(LocalEndpointsError):
    """Permanent failure for the given inputs."""

    pass


# =============================================================================
# Retriable Exceptions
# =============================================================================


class DockerUnavailableError(RetriableError):
    """The Docker daemon could not be reached or refused a read.

    Attributes:
        operation: Docker API operation that failed (e.g. "containers").
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        retry_after_ms: int = 1000,
        **kwargs: Any,
    ) -> None:
        """Initialize DockerUnavailableError.

        Args:
            message: Error message.
            operation: Docker API operation that failed.
            retry_after_ms: Suggested retry delay.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            retry_after_ms=retry_after_ms,
            error_code=ErrorCode.DOCKER_UNAVAILABLE,
            **kwargs,
        )
        self.operation = operation


# =============================================================================
# Non-Retriable Exceptions
# =============================================================================


class ContainerNotFoundError(NonRetriableError):
    """The requesting container could not be uniquely identified.

    Raised both when nothing matched and when several containers matched.

    Attributes:
        identifier: Container ID or name that was looked up, if any.
        caller_ip: Caller address that was looked up, if any.
        candidates: Number of containers that matched (0 or > 1).
    """

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        caller_ip: str | None = None,
        candidates: int = 0,
        **kwargs: Any,
    ) -> None:
        """Initialize ContainerNotFoundError.

        Args:
            message: Error message.
            identifier: Container ID or name that was looked up.
            caller_ip: Caller IP address that was looked up.
            candidates: Number of matching containers.
            **kwargs: Additional attributes.
        """
        super().__init__(
            message,
            error_code=ErrorCode.CONTAINER_NOT_FOUND,
            **kwargs,
        )
        self.identifier = identifier
        self.caller_ip = caller_ip
        self.candidates = candidates


class ConfigurationError(NonRetriableError):
    """Service configuration or environment is unusable.

    Also raised when the service cannot find its own container entry,
    since caller-IP resolution then has no network scope.

    Attributes:
        setting: Name of the problematic setting.
    """

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        error_code: str | ErrorCode = ErrorCode.CONFIGURATION_ERROR,
        **kwargs: Any,
    ) -> None:
        """Initialize ConfigurationError.

        Args:
            message: Error message.
            setting: Name of the problematic setting.
            error_code: Machine-readable error code.
            **kwargs: Additional attributes.
        """
        super().__init__(message, error_code=error_code, **kwargs)
        self.setting = setting


class TagParseError(ConfigurationError):
    """A tag list is not a comma-separated list of key=value pairs.

    Attributes:
        entry: The offending list entry.
    """

    def __init__(
        self,
        message: str,
        entry: str | None = None,
        setting: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(
            message,
            setting=setting,
            error_code=ErrorCode.TAG_PARSE_ERROR,
            **kwargs,
        )
        self.entry = entry
