from __future__ import annotations

from takeflow.fallback.context import FallbackContext, failure_error
from takeflow.fallback.factory import fallback_from_config
from takeflow.fallback.resolvers import (
    CallableFallback,
    ChainFallback,
    ErrorPageFallback,
    FallbackResolver,
    LoggingFallback,
    StaticFallback,
    StatusFallback,
)
from takeflow.fallback.router import FallbackRouter
from takeflow.fallback.status import (
    HTTP_INTERNAL_ERROR,
    OtherFailure,
    StatusFailure,
    classify,
    exception_for_status,
    status_code_of,
)

__all__ = [
    "CallableFallback",
    "ChainFallback",
    "ErrorPageFallback",
    "FallbackContext",
    "FallbackResolver",
    "FallbackRouter",
    "HTTP_INTERNAL_ERROR",
    "LoggingFallback",
    "OtherFailure",
    "StaticFallback",
    "StatusFailure",
    "StatusFallback",
    "classify",
    "exception_for_status",
    "failure_error",
    "fallback_from_config",
    "status_code_of",
]
