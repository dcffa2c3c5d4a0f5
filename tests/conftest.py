from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from fixtures_takes import FakeClock
from takeflow.observability.logging import LogContext
from takeflow.request import Request
from takeflow.response import TextResponse


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(start=100.0)


@pytest.fixture()
def request_x() -> Request:
    return Request(method="GET", href="/x")


@pytest.fixture()
def page() -> TextResponse:
    return TextResponse("fallback page", status=404)


@pytest.fixture(autouse=True)
def clear_log_context() -> Iterator[None]:
    """Reset LogContext between tests."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture(autouse=True)
def restore_takeflow_logger() -> Iterator[None]:
    """Undo handlers the CLI attaches to the package logger."""
    logger = logging.getLogger("takeflow")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
