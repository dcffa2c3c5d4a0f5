"""Structured logging helpers."""

from takeflow.observability.logging import (
    LogContext,
    StructuredConsoleFormatter,
    StructuredJSONFormatter,
    configure_logging,
    get_logger,
)

__all__ = [
    "LogContext",
    "StructuredConsoleFormatter",
    "StructuredJSONFormatter",
    "configure_logging",
    "get_logger",
]
