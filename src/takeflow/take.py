"""Takes: units that turn a request into a response."""

from __future__ import annotations

import inspect
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from takeflow.request import Request
from takeflow.response import Response

TakeFunc = Callable[[Request], Response | Awaitable[Response]]


class Take(ABC):
    """Abstract request handler."""

    @abstractmethod
    async def act(self, request: Request) -> Response:
        """Produce the response for ``request``."""


class FixedTake(Take):
    """Take that always answers with the same response."""

    def __init__(self, response: Response) -> None:
        self._response = response

    async def act(self, request: Request) -> Response:
        return self._response


class FailingTake(Take):
    """Take that raises the given exception on every request."""

    def __init__(self, error: Exception) -> None:
        self._error = error

    async def act(self, request: Request) -> Response:
        raise self._error


class CallableTake(Take):
    """Take that delegates to a plain or coroutine function."""

    def __init__(self, func: TakeFunc) -> None:
        if not callable(func):
            raise TypeError("func must be callable")
        self._func = func

    async def act(self, request: Request) -> Response:
        result = self._func(request)
        if inspect.isawaitable(result):
            return await result
        return result
