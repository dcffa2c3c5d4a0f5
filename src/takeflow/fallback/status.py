"""Status code classification for failures routed to a fallback."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus

from takeflow.exceptions import (
    BadRequestError,
    ForbiddenError,
    GoneError,
    HttpException,
    InternalServerError,
    MethodNotAllowedError,
    NotFoundError,
    ServiceUnavailableError,
    UnauthorizedError,
)

HTTP_INTERNAL_ERROR = int(HTTPStatus.INTERNAL_SERVER_ERROR)


_EXCEPTION_BY_STATUS: dict[int, type[HttpException]] = {
    HTTPStatus.BAD_REQUEST: BadRequestError,
    HTTPStatus.UNAUTHORIZED: UnauthorizedError,
    HTTPStatus.FORBIDDEN: ForbiddenError,
    HTTPStatus.NOT_FOUND: NotFoundError,
    HTTPStatus.METHOD_NOT_ALLOWED: MethodNotAllowedError,
    HTTPStatus.GONE: GoneError,
    HTTPStatus.INTERNAL_SERVER_ERROR: InternalServerError,
    HTTPStatus.SERVICE_UNAVAILABLE: ServiceUnavailableError,
}


@dataclass(frozen=True, slots=True)
class StatusFailure:
    """A failure that names its own HTTP status."""

    code: int
    error: BaseException

    @property
    def status_code(self) -> int:
        return self.code


@dataclass(frozen=True, slots=True)
class OtherFailure:
    """Any failure without a status; reported as an internal error."""

    error: BaseException

    @property
    def status_code(self) -> int:
        return HTTP_INTERNAL_ERROR


Failure = StatusFailure | OtherFailure


def classify(error: BaseException) -> Failure:
    """Return the tagged failure kind for an arbitrary exception."""
    if isinstance(error, HttpException):
        return StatusFailure(code=int(error.code), error=error)
    return OtherFailure(error=error)


def status_code_of(error: BaseException) -> int:
    """Return the status carried by ``error``, or 500 when it carries none."""
    return classify(error).status_code


def exception_for_status(code: int, message: str | None = None) -> HttpException:
    """Build the typed exception matching an HTTP status code."""
    exc_cls = _EXCEPTION_BY_STATUS.get(code)
    if exc_cls is None:
        return HttpException(code=code, message=message or reason_phrase(code))
    if message is None:
        return exc_cls()
    return exc_cls(message=message)


def reason_phrase(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return "Unknown"
