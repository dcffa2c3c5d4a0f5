"""Public API for takeflow.

This module re-exports the stable, supported surface area of the library.
Import from here when possible.
"""

from takeflow.auth import LogoutLink
from takeflow.exceptions import (
    BadRequestError,
    ConfigError,
    FallbackError,
    ForbiddenError,
    GoneError,
    HttpException,
    InternalServerError,
    MethodNotAllowedError,
    NotFoundError,
    RequestFailedError,
    ServiceUnavailableError,
    UnauthorizedError,
)
from takeflow.fallback import (
    CallableFallback,
    ChainFallback,
    ErrorPageFallback,
    FallbackContext,
    FallbackResolver,
    FallbackRouter,
    LoggingFallback,
    StaticFallback,
    StatusFallback,
    fallback_from_config,
    status_code_of,
)
from takeflow.request import Request
from takeflow.response import (
    DeferredResponse,
    EmptyResponse,
    FileResponse,
    Response,
    ResponseWithHeader,
    ResponseWithoutHeader,
    TextResponse,
    read_body,
)
from takeflow.take import CallableTake, FailingTake, FixedTake, Take

__all__ = [
    # requests and responses
    "Request",
    "Response",
    "DeferredResponse",
    "EmptyResponse",
    "FileResponse",
    "ResponseWithHeader",
    "ResponseWithoutHeader",
    "TextResponse",
    "read_body",
    # takes
    "Take",
    "CallableTake",
    "FailingTake",
    "FixedTake",
    # fallback
    "CallableFallback",
    "ChainFallback",
    "ErrorPageFallback",
    "FallbackContext",
    "FallbackResolver",
    "FallbackRouter",
    "LoggingFallback",
    "StaticFallback",
    "StatusFallback",
    "fallback_from_config",
    "status_code_of",
    # errors
    "BadRequestError",
    "ConfigError",
    "FallbackError",
    "ForbiddenError",
    "GoneError",
    "HttpException",
    "InternalServerError",
    "MethodNotAllowedError",
    "NotFoundError",
    "RequestFailedError",
    "ServiceUnavailableError",
    "UnauthorizedError",
    # auth
    "LogoutLink",
]
