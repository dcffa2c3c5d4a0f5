"""Inbound request value passed through takes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, field_validator

if TYPE_CHECKING:
    from starlette.requests import Request as StarletteRequest


class Request(BaseModel):
    """Immutable HTTP request.

    Attributes:
        method: HTTP method, upper case.
        href: Request URL, absolute or path-only.
        headers: Header lines in ``"Name: Value"`` form, in arrival order.
        body: Raw request body.
    """

    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    href: str = "/"
    headers: tuple[str, ...] = ()
    body: bytes = b""

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        method = value.strip().upper()
        if not method:
            raise ValueError("method must not be empty")
        return method

    def header(self, name: str) -> list[str]:
        """Return every value of the named header, case-insensitively."""
        wanted = name.strip().lower()
        values: list[str] = []
        for line in self.headers:
            key, sep, value = line.partition(":")
            if sep and key.strip().lower() == wanted:
                values.append(value.strip())
        return values

    @classmethod
    async def from_starlette(cls, request: StarletteRequest) -> Request:
        """Build a request from a Starlette request, reading its body."""
        return cls(
            method=request.method,
            href=str(request.url),
            headers=tuple(f"{key}: {value}" for key, value in request.headers.items()),
            body=await request.body(),
        )
