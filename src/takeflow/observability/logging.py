from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

__all__ = [
    "LOG_FORMAT_CONSOLE",
    "LOG_FORMAT_ENV",
    "LOG_FORMAT_JSON",
    "ContextFilter",
    "LogContext",
    "StructuredConsoleFormatter",
    "StructuredJSONFormatter",
    "configure_logging",
    "get_logger",
]

LOG_FORMAT_ENV = "TAKEFLOW_LOG_FORMAT"
LOG_FORMAT_JSON = "json"
LOG_FORMAT_CONSOLE = "console"

_CONTEXT_KEYS = ("request_id", "method", "path")
_LOG_CONTEXT: contextvars.ContextVar[dict[str, Any]] = contextvars.ContextVar("takeflow_log_context")

_DEFAULT_CONSOLE_FORMAT = (
    "%(asctime)s %(levelname)s %(name)s %(message)s "
    "request_id=%(request_id)s method=%(method)s path=%(path)s"
)

_RESERVED_FIELDS = {"timestamp", "level", "logger", "message", "exception", "stack"}

_LOG_RECORD_ATTRS = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


def _normalize_log_format(value: str | None) -> str:
    if not value:
        return LOG_FORMAT_JSON
    normalized = value.strip().lower()
    if normalized in {LOG_FORMAT_JSON, LOG_FORMAT_CONSOLE}:
        return normalized
    return LOG_FORMAT_JSON


def _context_snapshot() -> dict[str, Any]:
    current = _LOG_CONTEXT.get({})
    snapshot: dict[str, Any] = {key: current.get(key) for key in _CONTEXT_KEYS}
    for key, value in current.items():
        snapshot.setdefault(key, value)
    return snapshot


def _extract_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _LOG_RECORD_ATTRS and key not in _RESERVED_FIELDS and not key.startswith("_")
    }


class LogContext:
    """Request-scoped values added to every log record.

    Use as a context manager around request handling; values are kept in a
    context variable so concurrent tasks do not see each other's values.
    """

    def __init__(self, **values: Any) -> None:
        self._values = {key: value for key, value in values.items() if value is not None}
        self._token: contextvars.Token[dict[str, Any]] | None = None

    def __enter__(self) -> LogContext:
        merged = dict(_LOG_CONTEXT.get({}))
        merged.update(self._values)
        self._token = _LOG_CONTEXT.set(merged)
        return self

    def __exit__(self, exc_type: Any, exc: Any, traceback: Any) -> None:
        if self._token is not None:
            _LOG_CONTEXT.reset(self._token)
            self._token = None

    @classmethod
    def clear(cls) -> None:
        _LOG_CONTEXT.set({})

    @classmethod
    def snapshot(cls) -> dict[str, Any]:
        return _context_snapshot()


class ContextFilter(logging.Filter):

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context_snapshot().items():
            if not hasattr(record, key):
                record.__dict__[key] = "-" if value is None else value
        return True


class StructuredJSONFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_extract_extras(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = record.stack_info
        return json.dumps(payload, default=str)


class StructuredConsoleFormatter(logging.Formatter):

    def __init__(self, fmt: str | None = None, *, datefmt: str | None = None) -> None:
        super().__init__(fmt=fmt or _DEFAULT_CONSOLE_FORMAT, datefmt=datefmt)


def _build_handler(formatter: logging.Formatter, stream: Any, level: int | None) -> logging.Handler:
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    handler.setLevel(level or logging.NOTSET)
    handler._takeflow_handler = True  # type: ignore[attr-defined]
    return handler


def get_logger(
    name: str,
    *,
    log_format: str | None = None,
    level: int | None = None,
    stream: Any | None = None,
) -> logging.Logger:
    """Return a logger with a structured handler attached once.

    Args:
        name: Logger name.
        log_format: ``json`` or ``console``; defaults to ``$TAKEFLOW_LOG_FORMAT``.
        level: Optional level for the handler and the logger.
        stream: Optional output stream, stderr by default.
    """
    resolved = _normalize_log_format(log_format or os.getenv(LOG_FORMAT_ENV))
    formatter: logging.Formatter
    if resolved == LOG_FORMAT_CONSOLE:
        formatter = StructuredConsoleFormatter()
    else:
        formatter = StructuredJSONFormatter()
    logger = logging.getLogger(name)
    if not any(getattr(handler, "_takeflow_handler", False) for handler in logger.handlers):
        logger.addHandler(_build_handler(formatter, stream, level))
        logger.propagate = False
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


def configure_logging(log_format: str = LOG_FORMAT_JSON, level: str | int = "INFO") -> logging.Logger:
    """Route the whole ``takeflow`` logger tree through a structured handler.

    Calling it again replaces the handler, so the last format and level win.
    """
    package_logger = logging.getLogger("takeflow")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_takeflow_handler", False):
            package_logger.removeHandler(handler)
            handler.close()
    numeric = level if isinstance(level, int) else logging.getLevelName(level.upper())
    return get_logger("takeflow", log_format=log_format, level=numeric)
