"""Public observability primitives: JSON-lines logging and correlation context."""

from live_analysis.observability.logging import (
    JsonLineFormatter,
    LoggingConfig,
    LoggingHandle,
    correlation_scope,
    get_active_logging_handle,
    get_correlation_context,
    setup_logging,
    setup_structured_logging,
    shutdown_logging,
)

__all__ = [
    "JsonLineFormatter",
    "LoggingConfig",
    "LoggingHandle",
    "correlation_scope",
    "get_active_logging_handle",
    "get_correlation_context",
    "setup_logging",
    "setup_structured_logging",
    "shutdown_logging",
]
