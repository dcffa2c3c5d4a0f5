"""Take decorator that routes failures to a fallback resolver.

Failures are intercepted at three points, each with its own recovery:

1. while the inner take builds the response,
2. while the response head is read,
3. while the response body is opened.

Each failure is described in a ``FallbackContext`` and offered to the
resolver once. A response from the resolver replaces the failed one; a
declined or failed resolution raises ``FallbackError``.

The router holds no mutable state and is safe to share between concurrent
requests as long as the resolver is.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import TypeVar

from takeflow.exceptions import FallbackError
from takeflow.fallback.context import FallbackContext
from takeflow.fallback.resolvers import FallbackResolver
from takeflow.fallback.status import OtherFailure, StatusFailure, classify
from takeflow.request import Request
from takeflow.response import DeferredResponse, Response
from takeflow.take import Take

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], float]


def _class_name(obj: object) -> str:
    cls = obj if isinstance(obj, type) else type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


class FallbackRouter(Take):
    """Take that gives every failure one chance to become a valid response.

    Args:
        take: The take whose failures are routed.
        resolver: Resolver consulted with a ``FallbackContext`` per failure.
        clock: Monotonic clock in seconds, used for diagnostic timings only.
    """

    def __init__(
        self,
        take: Take,
        resolver: FallbackResolver,
        *,
        clock: Clock = time.monotonic,
    ) -> None:
        self._take = take
        self._resolver = resolver
        self._now = clock

    async def act(self, request: Request) -> Response:
        start = self._now()
        try:
            response = await self._take.act(request)
        except Exception as exc:
            response = await self._recover(request, exc, start)
        return self.wrap(response, request)

    async def _recover(self, request: Request, error: Exception, start: float) -> Response:
        failure = classify(error)
        context = FallbackContext.build(
            request, error, start, self._now(), code=failure.status_code
        )
        try:
            response = await self._resolver.route(context)
        except Exception as exc:
            logger.warning(
                "Fallback %s failed while routing %s for %s %s",
                _class_name(self._resolver),
                _class_name(error),
                request.method,
                request.href,
            )
            raise FallbackError(
                f"Fallback {_class_name(self._resolver)} failed to route {_class_name(error)}",
                original=error,
            ) from exc

        if response is None:
            match failure:
                case StatusFailure():
                    message = f"There is no fallback available in {_class_name(self._resolver)}"
                case OtherFailure():
                    message = (
                        f"There is no fallback available for {_class_name(error)} "
                        f"in {_class_name(self._resolver)}"
                    )
            logger.warning("%s: %s", message, context.cause)
            raise FallbackError(message, original=error) from context.cause

        logger.info(
            "Take failed with status %d, routed to fallback: %s",
            context.status_code,
            context.cause,
        )
        return response

    def wrap(self, response: Response, request: Request) -> DeferredResponse:
        """Guard the head and body of ``response`` with the resolver.

        Nothing is read from ``response`` here; each accessor of the returned
        response recovers on its own, every time it is called.
        """

        async def head() -> list[str]:
            return await self._guarded(
                response.head, lambda fallback: fallback.head(), request, "head"
            )

        async def body() -> AsyncIterator[bytes]:
            return await self._guarded(
                response.body, lambda fallback: fallback.body(), request, "body"
            )

        return DeferredResponse(head, body)

    async def _guarded(
        self,
        access: Callable[[], Awaitable[T]],
        fallback_access: Callable[[Response], Awaitable[T]],
        request: Request,
        part: str,
    ) -> T:
        start = self._now()
        try:
            return await access()
        except Exception as exc:
            original = exc
        context = FallbackContext.build(request, original, start, self._now())
        try:
            fallback = await self._resolver.route(context)
        except Exception as exc:
            logger.warning(
                "Fallback failed on response %s of %s %s", part, request.method, request.href
            )
            raise FallbackError(
                f"Fallback {_class_name(self._resolver)} failed to route response {part}: {exc}",
                original=original,
            ) from exc
        if fallback is None:
            message = f"There is no fallback available in {_class_name(self._resolver)}"
            logger.warning("%s: %s", message, context.cause)
            raise FallbackError(message, original=original) from context.cause
        try:
            result = await fallback_access(fallback)
        except Exception as exc:
            logger.warning(
                "Fallback response %s failed for %s %s", part, request.method, request.href
            )
            raise FallbackError(
                f"Fallback response {part} failed in {_class_name(self._resolver)}: {exc}",
                original=original,
            ) from exc
        logger.info(
            "Response %s failed with status %d, routed to fallback: %s",
            part,
            context.status_code,
            context.cause,
        )
        return result
