"""HTTP responses with lazily produced head and body.

A response exposes two independent coroutines:
    - ``head()`` returns the status line followed by ``"Name: Value"`` header lines.
    - ``body()`` opens the content stream and returns an async iterator of chunks.

Neither is evaluated before the caller awaits it, so a response that points
at a missing file or a broken upstream only fails when it is actually read.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from http import HTTPStatus
from pathlib import Path

import anyio

DEFAULT_TEXT_TYPE = "text/plain; charset=utf-8"
DEFAULT_CHUNK_SIZE = 64 * 1024

HeadProducer = Callable[[], Awaitable[list[str]]]
BodyProducer = Callable[[], Awaitable[AsyncIterator[bytes]]]


class Response(ABC):
    """Abstract HTTP response."""

    @abstractmethod
    async def head(self) -> list[str]:
        """Return the status line and header lines."""

    @abstractmethod
    async def body(self) -> AsyncIterator[bytes]:
        """Open the body stream."""


def status_line(status: int) -> str:
    try:
        reason = HTTPStatus(status).phrase
    except ValueError:
        reason = "Unknown"
    return f"HTTP/1.1 {status} {reason}"


async def iter_chunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


class DeferredResponse(Response):
    """Response built from two independent zero-argument producers.

    Awaiting ``head()`` runs only the head producer and awaiting ``body()``
    runs only the body producer. Results are not cached.
    """

    def __init__(self, head: HeadProducer, body: BodyProducer) -> None:
        self._head = head
        self._body = body

    async def head(self) -> list[str]:
        return await self._head()

    async def body(self) -> AsyncIterator[bytes]:
        return await self._body()


class EmptyResponse(Response):
    """Response with a status line and no content."""

    def __init__(self, status: int = 204) -> None:
        self._status = status

    async def head(self) -> list[str]:
        return [status_line(self._status)]

    async def body(self) -> AsyncIterator[bytes]:
        return iter_chunks(())


class TextResponse(Response):
    """In-memory response with a text or bytes body."""

    def __init__(
        self,
        text: str | bytes,
        *,
        status: int = 200,
        content_type: str = DEFAULT_TEXT_TYPE,
    ) -> None:
        self._content = text.encode("utf-8") if isinstance(text, str) else bytes(text)
        self._status = status
        self._content_type = content_type

    async def head(self) -> list[str]:
        return [
            status_line(self._status),
            f"Content-Type: {self._content_type}",
            f"Content-Length: {len(self._content)}",
        ]

    async def body(self) -> AsyncIterator[bytes]:
        return iter_chunks((self._content,))


class FileResponse(Response):
    """Response streaming a file that is opened only when the body is read."""

    def __init__(
        self,
        path: str | Path,
        *,
        status: int = 200,
        content_type: str = "application/octet-stream",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._path = Path(path)
        self._status = status
        self._content_type = content_type
        self._chunk_size = chunk_size

    async def head(self) -> list[str]:
        return [status_line(self._status), f"Content-Type: {self._content_type}"]

    async def body(self) -> AsyncIterator[bytes]:
        # Opening here surfaces FileNotFoundError at access time.
        handle = await anyio.open_file(self._path, "rb")
        return FileChunks(handle, self._chunk_size)


class FileChunks:
    """Async iterator over an open file that owns and closes the handle.

    The handle is closed once the file is exhausted or a read fails. A caller
    that stops early, or never iterates at all, releases it with ``aclose()``.
    """

    def __init__(self, handle: anyio.AsyncFile[bytes], chunk_size: int) -> None:
        self._handle = handle
        self._chunk_size = chunk_size
        self.closed = False

    def __aiter__(self) -> FileChunks:
        return self

    async def __anext__(self) -> bytes:
        if self.closed:
            raise StopAsyncIteration
        try:
            chunk = await self._handle.read(self._chunk_size)
        except BaseException:
            self._release()
            raise
        if not chunk:
            await self.aclose()
            raise StopAsyncIteration
        return chunk

    async def aclose(self) -> None:
        if not self.closed:
            self.closed = True
            await self._handle.aclose()

    def _release(self) -> None:
        if not self.closed:
            self.closed = True
            self._handle.wrapped.close()

    def __del__(self) -> None:
        self._release()


class ResponseWithHeader(Response):
    """Response decorator that appends one more header line.

    Existing headers with the same name are kept, so the result may carry
    duplicates. To replace a header, combine with ``ResponseWithoutHeader``::

        ResponseWithHeader(ResponseWithoutHeader(res, "Host"), "Host", "www.example.com")
    """

    def __init__(
        self,
        response: Response | None,
        name: str,
        value: str | None = None,
    ) -> None:
        self._origin = response if response is not None else EmptyResponse()
        self._line = name if value is None else f"{name}: {value}"

    async def head(self) -> list[str]:
        lines = list(await self._origin.head())
        lines.append(self._line)
        return lines

    async def body(self) -> AsyncIterator[bytes]:
        return await self._origin.body()


class ResponseWithoutHeader(Response):
    """Response decorator that drops every header line with the given name."""

    def __init__(self, response: Response, name: str) -> None:
        self._origin = response
        self._name = name.strip().lower()

    async def head(self) -> list[str]:
        lines = await self._origin.head()
        kept = lines[:1]
        for line in lines[1:]:
            key, _, _ = line.partition(":")
            if key.strip().lower() != self._name:
                kept.append(line)
        return kept

    async def body(self) -> AsyncIterator[bytes]:
        return await self._origin.body()


async def read_body(response: Response) -> bytes:
    """Open the body of ``response`` and collect it in memory."""
    stream = await response.body()
    return b"".join([chunk async for chunk in stream])


def parse_status(head: list[str]) -> int:
    """Extract the status code from the first head line."""
    if not head:
        raise ValueError("response head is empty")
    parts = head[0].split(" ", 2)
    if len(parts) < 2 or not parts[1].isdigit():
        raise ValueError(f"malformed status line: {head[0]!r}")
    return int(parts[1])


def parse_headers(head: list[str]) -> list[tuple[str, str]]:
    """Split header lines into ``(name, value)`` pairs, skipping the status line."""
    headers: list[tuple[str, str]] = []
    for line in head[1:]:
        name, sep, value = line.partition(":")
        if not sep:
            raise ValueError(f"malformed header line: {line!r}")
        headers.append((name.strip(), value.strip()))
    return headers
