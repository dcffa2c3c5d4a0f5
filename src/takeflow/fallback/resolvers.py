"""Fallback resolvers.

A resolver turns a ``FallbackContext`` into a substitute response, or
returns ``None`` to decline. Declining is not an error; raising is.

Available resolvers:
    - StaticFallback: always answers with a fixed response.
    - StatusFallback: delegates only for selected status codes.
    - ChainFallback: tries resolvers in order until one answers.
    - CallableFallback: delegates to a user-supplied callable (sync or async).
    - LoggingFallback: logs the failure and declines.
    - ErrorPageFallback: renders the failure as a plain-text page.

Resolvers may be shared by many concurrent requests and keep no mutable state.
"""

from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Awaitable, Callable

from takeflow.fallback.context import FallbackContext
from takeflow.response import Response, TextResponse

logger = logging.getLogger(__name__)

ResolverFunc = Callable[[FallbackContext], Response | None | Awaitable[Response | None]]


class FallbackResolver(ABC):
    """Abstract interface for fallback resolvers."""

    @abstractmethod
    async def route(self, context: FallbackContext) -> Response | None:
        """Return a substitute response, or None when not applicable."""


class StaticFallback(FallbackResolver):
    """Resolver that always answers with the same response."""

    def __init__(self, response: Response) -> None:
        self._response = response

    async def route(self, context: FallbackContext) -> Response | None:
        return self._response


class StatusFallback(FallbackResolver):
    """Resolver that only handles the given status codes."""

    def __init__(self, codes: int | Iterable[int], resolver: FallbackResolver | Response) -> None:
        if isinstance(codes, int):
            codes = (codes,)
        self.codes = frozenset(int(code) for code in codes)
        if not self.codes:
            raise ValueError("codes must not be empty")
        if isinstance(resolver, Response):
            resolver = StaticFallback(resolver)
        self._resolver = resolver

    async def route(self, context: FallbackContext) -> Response | None:
        if context.status_code not in self.codes:
            return None
        return await self._resolver.route(context)


class ChainFallback(FallbackResolver):
    """Resolver that asks each resolver in order; first answer wins."""

    def __init__(self, *resolvers: FallbackResolver) -> None:
        self.resolvers = tuple(resolvers)

    async def route(self, context: FallbackContext) -> Response | None:
        for resolver in self.resolvers:
            response = await resolver.route(context)
            if response is not None:
                return response
        return None


class CallableFallback(FallbackResolver):
    """Resolver that delegates to a callable or coroutine function."""

    def __init__(self, func: ResolverFunc) -> None:
        if not callable(func):
            raise TypeError("func must be callable")
        self._func = func

    async def route(self, context: FallbackContext) -> Response | None:
        result = self._func(context)
        if inspect.isawaitable(result):
            return await result
        return result


class LoggingFallback(FallbackResolver):
    """Resolver that logs the failure and always declines."""

    def __init__(self, log: logging.Logger | None = None, level: int = logging.ERROR) -> None:
        self._logger = log or logger
        self._level = level

    async def route(self, context: FallbackContext) -> Response | None:
        cause = context.cause
        self._logger.log(
            self._level,
            "%d: %s",
            context.status_code,
            cause,
            exc_info=(type(cause), cause, cause.__traceback__),
            extra={"status_code": context.status_code},
        )
        return None


class ErrorPageFallback(FallbackResolver):
    """Resolver that renders the diagnostic message as a text page."""

    def __init__(self, status_code: int | None = None) -> None:
        self._status_code = status_code

    async def route(self, context: FallbackContext) -> Response | None:
        status = self._status_code or context.status_code
        return TextResponse(f"{status}: {context.cause}\n", status=status)
