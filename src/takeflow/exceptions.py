from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class HttpException(Exception):
    """Failure that carries an explicit HTTP status code."""

    code: int
    message: str = ""
    data: Any | None = None
    cause: Exception | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (self.message,))
        if self.cause is not None:
            object.__setattr__(self, "__cause__", self.cause)
            object.__setattr__(self, "__suppress_context__", True)

    def __str__(self) -> str:
        return self.message or f"HTTP {self.code}"


@dataclass(frozen=True)
class BadRequestError(HttpException):
    """Raised when the request is malformed."""

    code: int = 400
    message: str = "Bad request"


@dataclass(frozen=True)
class UnauthorizedError(HttpException):
    """Raised when the request carries no valid credentials."""

    code: int = 401
    message: str = "Unauthorized"


@dataclass(frozen=True)
class ForbiddenError(HttpException):
    """Raised when the caller may not access the resource."""

    code: int = 403
    message: str = "Forbidden"


@dataclass(frozen=True)
class NotFoundError(HttpException):
    """Raised when the requested resource does not exist."""

    code: int = 404
    message: str = "Not found"


@dataclass(frozen=True)
class MethodNotAllowedError(HttpException):
    """Raised when the HTTP method is not supported by the resource."""

    code: int = 405
    message: str = "Method not allowed"


@dataclass(frozen=True)
class GoneError(HttpException):
    """Raised when a resource is no longer available."""

    code: int = 410
    message: str = "Gone"


@dataclass(frozen=True)
class InternalServerError(HttpException):
    """Raised for unexpected server-side failures."""

    code: int = 500
    message: str = "Internal server error"


@dataclass(frozen=True)
class ServiceUnavailableError(HttpException):
    """Raised when the service is temporarily unable to respond."""

    code: int = 503
    message: str = "Service unavailable"


class RequestFailedError(RuntimeError):
    """Diagnostic error describing which request failed and how long it ran.

    The original failure is kept as ``__cause__``.
    """

    def __init__(self, method: str, href: str, elapsed_ms: int, message: str) -> None:
        self.method = method
        self.href = href
        self.elapsed_ms = elapsed_ms
        super().__init__(
            f"[{method} {href}] failed in {format_elapsed(elapsed_ms)}: {message}"
        )


class FallbackError(IOError):
    """Raised when a fallback declines, or fails, to render a failure."""

    def __init__(self, message: str, *, original: BaseException | None = None) -> None:
        super().__init__(message)
        self.original = original


class ConfigError(RuntimeError):
    """Raised when configuration loading fails."""


def format_elapsed(elapsed_ms: int) -> str:
    """Render milliseconds below one second, whole seconds otherwise."""
    if elapsed_ms < 1000:
        return f"{elapsed_ms}ms"
    return f"{elapsed_ms // 1000}s"
