"""
Observability package: OpenTelemetry tracing for local-container-endpoints.
"""

from src.observability.tracing import (
    setup_tracing,
    shutdown_tracing,
    TracingMiddleware,
    get_tracer,
    traced_span,
)

__all__ = [
    "setup_tracing",
    "shutdown_tracing",
    "TracingMiddleware",
    "get_tracer",
    "traced_span",
]
