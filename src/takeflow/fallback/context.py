from __future__ import annotations

import math
from dataclasses import dataclass

from takeflow.exceptions import RequestFailedError
from takeflow.fallback.status import status_code_of
from takeflow.request import Request


@dataclass(frozen=True, slots=True)
class FallbackContext:
    """What a fallback resolver gets to see about one failure.

    Attributes:
        request: The request that was being processed.
        status_code: HTTP status attributed to the failure.
        cause: Diagnostic error chained to the original failure.
    """

    request: Request
    status_code: int
    cause: RequestFailedError

    @classmethod
    def build(
        cls,
        request: Request,
        error: BaseException,
        start: float,
        now: float,
        code: int | None = None,
    ) -> FallbackContext:
        """Build a context for ``error``; ``start`` and ``now`` are clock seconds."""
        return cls(
            request=request,
            status_code=status_code_of(error) if code is None else code,
            cause=failure_error(error, request, start, now),
        )


def failure_error(
    error: BaseException, request: Request, start: float, now: float
) -> RequestFailedError:
    """Describe ``error`` with the request identity and elapsed time."""
    # Whole milliseconds, truncated; the inner round drops float noise.
    elapsed_ms = max(0, math.floor(round((now - start) * 1000, 6)))
    failure = RequestFailedError(
        request.method, request.href, elapsed_ms, str(error) or type(error).__name__
    )
    failure.__cause__ = error
    return failure
