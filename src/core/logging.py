"""Structured logging module for local-container-endpoints.

Provides JSON-formatted structured logging using structlog.

- configure_logging() runs once per process; later calls are no-ops
  unless force=True.
- Every event carries the current request context (request ID and
  caller IP) when one has been bound by the HTTP middleware.
"""

import contextvars
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict


_configured: bool = False


# =============================================================================
# Request Context
# =============================================================================
_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_caller_ip_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "caller_ip", default=None
)


def bind_request_context(request_id: str | None, caller_ip: str | None) -> None:
    """Bind request ID and caller IP for the current request context."""
    _request_id_var.set(request_id)
    _caller_ip_var.set(caller_ip)


def clear_request_context() -> None:
    """Drop any bound request context."""
    _request_id_var.set(None)
    _caller_ip_var.set(None)


def get_request_id() -> str | None:
    """Get the request ID bound to the current context, if any."""
    return _request_id_var.get()


def get_caller_ip() -> str | None:
    """Get the caller IP bound to the current context, if any."""
    return _caller_ip_var.get()


# =============================================================================
# Custom Processors
# =============================================================================
def add_request_context(
    _logger: object, _method_name: str, event_dict: EventDict
) -> EventDict:
    """Add request_id and caller_ip to the event when bound.

    Values already present on the event win over the context.
    """
    request_id = get_request_id()
    if request_id is not None:
        event_dict.setdefault("request_id", request_id)
    caller_ip = get_caller_ip()
    if caller_ip is not None:
        event_dict.setdefault("caller_ip", caller_ip)
    return event_dict


_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}


def _level_to_int(level: str) -> int:
    return _LEVELS.get(level.upper(), 20)


# =============================================================================
# Singleton Configuration
# =============================================================================
def configure_logging(
    level: str = "INFO",
    stream: TextIO | None = None,
    force: bool = False,
) -> None:
    """Configure structlog once at application startup.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Output stream. Defaults to sys.stdout.
        force: Force reconfiguration (for testing only).
    """
    global _configured

    if _configured and not force:
        return

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
        add_request_context,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(_level_to_int(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stdout),
        cache_logger_on_first_use=False,
    )

    _configured = True


def reset_logging() -> None:
    """Reset configuration state so tests can reconfigure."""
    global _configured
    _configured = False


def get_logger(name: str) -> Any:
    """Get a structlog logger bound to ``name``.

    Configures logging with defaults first if nothing has yet.
    """
    configure_logging()
    return structlog.get_logger().bind(logger=name)
