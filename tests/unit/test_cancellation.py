"""Tests for the broadcast cancellation token."""

import asyncio

import pytest

from crosspost.cancellation import CancellationToken, cancellable
from crosspost.domain.errors import PostCancelledError


class TestCancellationToken:
    def test_starts_uncancelled(self) -> None:
        token = CancellationToken()

        assert token.cancelled is False
        assert token.reason is None
        token.raise_if_cancelled()

    def test_cancel_sets_reason(self) -> None:
        token = CancellationToken()
        token.cancel("Shutting down")

        assert token.cancelled is True
        assert token.reason == "Shutting down"
        with pytest.raises(PostCancelledError, match="Shutting down"):
            token.raise_if_cancelled()

    def test_cancel_is_idempotent(self) -> None:
        token = CancellationToken()
        calls = []
        token.add_listener(calls.append)

        token.cancel("first")
        token.cancel("second")

        assert token.reason == "first"
        assert calls == [token]

    def test_every_listener_runs_once(self) -> None:
        token = CancellationToken()
        calls = []
        token.add_listener(lambda t: calls.append("a"))
        token.add_listener(lambda t: calls.append("b"))

        token.cancel()
        token.cancel()

        assert calls == ["a", "b"]

    def test_removed_listener_not_called(self) -> None:
        token = CancellationToken()
        calls = []
        remove = token.add_listener(calls.append)

        remove()
        token.cancel()

        assert calls == []

    def test_late_listener_runs_immediately(self) -> None:
        token = CancellationToken()
        token.cancel()
        calls = []

        token.add_listener(calls.append)

        assert calls == [token]

    @pytest.mark.asyncio
    async def test_wait_returns_after_cancel(self) -> None:
        token = CancellationToken()
        asyncio.get_running_loop().call_soon(token.cancel)

        await asyncio.wait_for(token.wait(), timeout=1)

        assert token.cancelled is True


class TestGuard:
    @pytest.mark.asyncio
    async def test_returns_result_when_not_cancelled(self) -> None:
        async def work():
            return 42

        assert await CancellationToken().guard(work()) == 42

    @pytest.mark.asyncio
    async def test_propagates_inner_errors(self) -> None:
        async def work():
            raise ValueError("bad")

        with pytest.raises(ValueError, match="bad"):
            await CancellationToken().guard(work())

    @pytest.mark.asyncio
    async def test_cancel_interrupts_work(self) -> None:
        token = CancellationToken()
        finished = False

        async def work():
            nonlocal finished
            await asyncio.sleep(10)
            finished = True

        asyncio.get_running_loop().call_later(0.01, token.cancel, "Too slow")

        with pytest.raises(PostCancelledError, match="Too slow"):
            await token.guard(work())

        assert finished is False

    @pytest.mark.asyncio
    async def test_already_cancelled_never_starts_work(self) -> None:
        token = CancellationToken()
        token.cancel()
        started = False

        async def work():
            nonlocal started
            started = True

        with pytest.raises(PostCancelledError):
            await token.guard(work())

        assert started is False

    @pytest.mark.asyncio
    async def test_one_token_stops_many_calls(self) -> None:
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        results = await asyncio.gather(
            token.guard(asyncio.sleep(10)),
            token.guard(asyncio.sleep(10)),
            return_exceptions=True,
        )

        assert all(isinstance(r, PostCancelledError) for r in results)


class TestCancellable:
    @pytest.mark.asyncio
    async def test_without_signal_awaits_directly(self) -> None:
        async def work():
            return "done"

        assert await cancellable(work(), None) == "done"

    @pytest.mark.asyncio
    async def test_with_cancelled_signal_raises(self) -> None:
        token = CancellationToken()
        token.cancel()

        with pytest.raises(PostCancelledError):
            await cancellable(asyncio.sleep(0), token)
