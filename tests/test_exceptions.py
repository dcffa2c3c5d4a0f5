from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from takeflow.exceptions import (
    BadRequestError,
    FallbackError,
    ForbiddenError,
    GoneError,
    HttpException,
    InternalServerError,
    MethodNotAllowedError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
)

EXCEPTION_DEFAULTS = [
    (BadRequestError, 400, "Bad request"),
    (UnauthorizedError, 401, "Unauthorized"),
    (ForbiddenError, 403, "Forbidden"),
    (NotFoundError, 404, "Not found"),
    (MethodNotAllowedError, 405, "Method not allowed"),
    (GoneError, 410, "Gone"),
    (InternalServerError, 500, "Internal server error"),
    (ServiceUnavailableError, 503, "Service unavailable"),
]


@pytest.mark.parametrize(("exc_cls", "code", "message"), EXCEPTION_DEFAULTS)
def test_exception_defaults(exc_cls: type[HttpException], code: int, message: str) -> None:
    exc = exc_cls()

    assert isinstance(exc, HttpException)
    assert exc.code == code
    assert str(exc) == message
    assert exc.args == (message,)


def test_cause_is_chained() -> None:
    cause = OSError("disk")

    exc = NotFoundError(message="missing file", cause=cause)

    assert exc.__cause__ is cause
    assert exc.__suppress_context__ is True


def test_http_exception_is_frozen() -> None:
    exc = HttpException(418)

    assert str(exc) == "HTTP 418"
    with pytest.raises(FrozenInstanceError):
        exc.code = 200  # type: ignore[misc]


def test_fallback_error_keeps_original() -> None:
    original = ValueError("x")

    error = FallbackError("no fallback", original=original)

    assert isinstance(error, OSError)
    assert str(error) == "no fallback"
    assert error.original is original
