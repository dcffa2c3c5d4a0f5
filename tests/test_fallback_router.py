from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

import pytest

from fixtures_takes import (
    ExplodingFallback,
    FakeClock,
    RecordingFallback,
    ScriptedResponse,
)
from takeflow.exceptions import (
    FallbackError,
    ForbiddenError,
    NotFoundError,
    RequestFailedError,
)
from takeflow.fallback.router import FallbackRouter
from takeflow.request import Request
from takeflow.response import Response, TextResponse, read_body
from takeflow.take import CallableTake, FailingTake, FixedTake

RECORDING = f"{RecordingFallback.__module__}.RecordingFallback"


class Halt(BaseException):
    """Non-Exception failure the router must not intercept."""


class SlowBrokenHead(Response):
    def __init__(self, clock: FakeClock, seconds: float) -> None:
        self._clock = clock
        self._seconds = seconds

    async def head(self) -> list[str]:
        self._clock.advance(self._seconds)
        raise OSError("slow")

    async def body(self) -> AsyncIterator[bytes]:
        raise AssertionError("body must not be read")


def _cause_messages(error: BaseException) -> list[str]:
    messages = []
    current: BaseException | None = error
    while current is not None:
        messages.append(str(current))
        current = current.__cause__
    return messages


class TestTakeFailures:
    """Failures raised while the take builds its response."""

    @pytest.mark.asyncio
    async def test_success_passes_through(self, clock: FakeClock, request_x: Request) -> None:
        resolver = RecordingFallback()
        origin = TextResponse("hello")
        router = FallbackRouter(FixedTake(origin), resolver, clock=clock.now)

        response = await router.act(request_x)

        assert await response.head() == await origin.head()
        assert await read_body(response) == b"hello"
        assert resolver.contexts == []

    @pytest.mark.asyncio
    async def test_status_failure_routes_to_fallback(
        self, clock: FakeClock, request_x: Request, page: TextResponse
    ) -> None:
        resolver = RecordingFallback({404: page})
        router = FallbackRouter(FailingTake(NotFoundError()), resolver, clock=clock.now)

        response = await router.act(request_x)

        assert await response.head() == await page.head()
        assert await read_body(response) == b"fallback page"
        [context] = resolver.contexts
        assert context.status_code == 404
        assert context.request is request_x
        assert isinstance(context.cause, RequestFailedError)
        assert isinstance(context.cause.__cause__, NotFoundError)

    @pytest.mark.asyncio
    async def test_untyped_failure_is_internal_error(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        error_page = TextResponse("oops", status=500)
        resolver = RecordingFallback({500: error_page})
        router = FallbackRouter(FailingTake(ValueError("boom")), resolver, clock=clock.now)

        response = await router.act(request_x)

        assert await read_body(response) == b"oops"
        assert resolver.contexts[0].status_code == 500
        assert str(resolver.contexts[0].cause) == "[GET /x] failed in 0ms: boom"

    @pytest.mark.asyncio
    async def test_status_failure_escalates_when_declined(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        original = NotFoundError(message="no such page")
        router = FallbackRouter(FailingTake(original), RecordingFallback(), clock=clock.now)

        with pytest.raises(FallbackError) as info:
            await router.act(request_x)

        assert str(info.value) == f"There is no fallback available in {RECORDING}"
        assert info.value.original is original
        assert isinstance(info.value.__cause__, RequestFailedError)
        assert info.value.__cause__.__cause__ is original
        assert any("no such page" in message for message in _cause_messages(info.value))

    @pytest.mark.asyncio
    async def test_untyped_failure_escalation_names_exception_class(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        router = FallbackRouter(FailingTake(KeyError("k")), RecordingFallback(), clock=clock.now)

        with pytest.raises(FallbackError) as info:
            await router.act(request_x)

        assert str(info.value) == (
            f"There is no fallback available for builtins.KeyError in {RECORDING}"
        )
        assert isinstance(info.value.original, KeyError)

    @pytest.mark.asyncio
    async def test_failing_resolver_escalates(self, clock: FakeClock, request_x: Request) -> None:
        original = ForbiddenError()
        router = FallbackRouter(FailingTake(original), ExplodingFallback(), clock=clock.now)

        with pytest.raises(FallbackError) as info:
            await router.act(request_x)

        assert isinstance(info.value.__cause__, RuntimeError)
        assert info.value.original is original

    @pytest.mark.asyncio
    async def test_base_exceptions_are_not_intercepted(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        def halt(_: Request) -> Response:
            raise Halt()

        resolver = RecordingFallback({500: TextResponse("never")})
        router = FallbackRouter(CallableTake(halt), resolver, clock=clock.now)

        with pytest.raises(Halt):
            await router.act(request_x)
        assert resolver.contexts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("seconds", "shown"),
        [(0.25, "250ms"), (0.2506, "250ms"), (0.9996, "999ms"), (1.5, "1s")],
    )
    async def test_elapsed_time_measured_from_take_start(
        self, clock: FakeClock, request_x: Request, seconds: float, shown: str
    ) -> None:
        def slow(_: Request) -> Response:
            clock.advance(seconds)
            raise OSError("disk")

        resolver = RecordingFallback({500: TextResponse("x", status=500)})
        router = FallbackRouter(CallableTake(slow), resolver, clock=clock.now)

        await router.act(request_x)

        assert str(resolver.contexts[0].cause) == f"[GET /x] failed in {shown}: disk"


class TestDeferredAccess:
    """Failures raised while the head or body of a response is read."""

    @pytest.mark.asyncio
    async def test_wrapping_reads_nothing(self, clock: FakeClock, request_x: Request) -> None:
        origin = ScriptedResponse(head=OSError("head"), body=OSError("body"))
        router = FallbackRouter(FixedTake(origin), RecordingFallback(), clock=clock.now)

        await router.act(request_x)

        assert origin.head_calls == 0
        assert origin.body_calls == 0

    @pytest.mark.asyncio
    async def test_head_and_body_recover_independently(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        recovered = TextResponse("recovered", status=500)
        resolver = RecordingFallback({500: recovered})
        origin = ScriptedResponse(head=OSError("head broke"), body=b"data")
        response = await FallbackRouter(FixedTake(origin), resolver, clock=clock.now).act(
            request_x
        )

        assert await read_body(response) == b"data"
        assert resolver.contexts == []
        assert origin.head_calls == 0

        assert await response.head() == await recovered.head()
        [context] = resolver.contexts
        assert context.status_code == 500
        assert isinstance(context.cause.__cause__, OSError)
        assert origin.body_calls == 1

    @pytest.mark.asyncio
    async def test_head_failure_keeps_status_code(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        denied = TextResponse("denied", status=403)
        resolver = RecordingFallback({403: denied})
        origin = ScriptedResponse(head=ForbiddenError(), body=b"")
        response = await FallbackRouter(FixedTake(origin), resolver, clock=clock.now).act(
            request_x
        )

        assert await response.head() == await denied.head()
        assert resolver.contexts[0].status_code == 403

    @pytest.mark.asyncio
    async def test_repeated_head_recovers_every_time(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        recovered = TextResponse("recovered", status=500)
        resolver = RecordingFallback({500: recovered})
        origin = ScriptedResponse(head=OSError("always"), body=b"")
        response = await FallbackRouter(FixedTake(origin), resolver, clock=clock.now).act(
            request_x
        )

        first = await response.head()
        second = await response.head()

        assert first == second == await recovered.head()
        assert origin.head_calls == 2
        assert len(resolver.contexts) == 2

    @pytest.mark.asyncio
    async def test_body_failure_routes_to_fallback(
        self, clock: FakeClock, request_x: Request, page: TextResponse
    ) -> None:
        resolver = RecordingFallback({500: page})
        origin = ScriptedResponse(head=["HTTP/1.1 200 OK"], body=FileNotFoundError("gone"))
        response = await FallbackRouter(FixedTake(origin), resolver, clock=clock.now).act(
            request_x
        )

        assert await response.head() == ["HTTP/1.1 200 OK"]
        assert await read_body(response) == b"fallback page"
        assert isinstance(resolver.contexts[0].cause.__cause__, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_body_failure_escalates_when_declined(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        missing = FileNotFoundError("gone")
        origin = ScriptedResponse(head=["HTTP/1.1 200 OK"], body=missing)
        response = await FallbackRouter(
            FixedTake(origin), RecordingFallback(), clock=clock.now
        ).act(request_x)

        with pytest.raises(FallbackError) as info:
            await response.body()

        assert str(info.value) == f"There is no fallback available in {RECORDING}"
        assert info.value.original is missing
        assert isinstance(info.value.__cause__, RequestFailedError)
        assert info.value.__cause__.__cause__ is missing

    @pytest.mark.asyncio
    async def test_failing_resolver_on_access_chains_both_failures(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        broken = OSError("head broke")
        origin = ScriptedResponse(head=broken, body=b"")
        response = await FallbackRouter(
            FixedTake(origin), ExplodingFallback(), clock=clock.now
        ).act(request_x)

        with pytest.raises(FallbackError) as info:
            await response.head()

        assert isinstance(info.value.__cause__, RuntimeError)
        assert info.value.original is broken

    @pytest.mark.asyncio
    async def test_broken_fallback_head_escalates(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        first = OSError("first")
        resolver = RecordingFallback({500: ScriptedResponse(head=RuntimeError("also broken"))})
        origin = ScriptedResponse(head=first, body=b"")
        response = await FallbackRouter(FixedTake(origin), resolver, clock=clock.now).act(
            request_x
        )

        with pytest.raises(FallbackError) as info:
            await response.head()

        assert str(info.value.__cause__) == "also broken"
        assert info.value.original is first

    @pytest.mark.asyncio
    async def test_access_timing_starts_at_access(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        resolver = RecordingFallback({500: TextResponse("x", status=500)})
        response = await FallbackRouter(
            FixedTake(SlowBrokenHead(clock, 2.1)), resolver, clock=clock.now
        ).act(request_x)
        clock.advance(30)

        await response.head()

        assert str(resolver.contexts[0].cause) == "[GET /x] failed in 2s: slow"

    @pytest.mark.asyncio
    async def test_fallback_response_gets_its_own_recovery(
        self, clock: FakeClock, request_x: Request
    ) -> None:
        final = TextResponse("final", status=500)
        resolver = RecordingFallback(
            {404: ScriptedResponse(head=OSError("bad page")), 500: final}
        )
        router = FallbackRouter(FailingTake(NotFoundError()), resolver, clock=clock.now)

        response = await router.act(request_x)

        assert await response.head() == await final.head()
        assert [context.status_code for context in resolver.contexts] == [404, 500]

    @pytest.mark.asyncio
    async def test_concurrent_access_is_independent(
        self, clock: FakeClock, page: TextResponse
    ) -> None:
        resolver = RecordingFallback({500: page})
        origin = ScriptedResponse(head=OSError("head"), body=b"payload")
        router = FallbackRouter(FixedTake(origin), resolver, clock=clock.now)
        requests = [Request(href=f"/r/{index}") for index in range(5)]

        responses = await asyncio.gather(*(router.act(request) for request in requests))
        heads = await asyncio.gather(*(response.head() for response in responses))
        bodies = await asyncio.gather(*(read_body(response) for response in responses))

        expected = await page.head()
        assert all(head == expected for head in heads)
        assert bodies == [b"payload"] * 5
        assert sorted(context.request.href for context in resolver.contexts) == sorted(
            request.href for request in requests
        )
