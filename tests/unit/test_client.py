"""Tests for the fan-out client."""

import asyncio

import pytest

from conftest import EchoStrategy, FailingStrategy, LinkedEchoStrategy, SlowStrategy
from crosspost import (
    CancellationToken,
    Client,
    FailureResult,
    ImageEmbed,
    InvalidArgumentError,
    InvalidConfigurationError,
    PostCancelledError,
    PostOptions,
    PostToEntry,
    PostToOptions,
    ProvidesPostUrl,
    Strategy,
    StrategyNotFoundError,
    SuccessResult,
)


class SyncStrategy(Strategy):
    id = "sync"
    name = "Sync"

    def post(self, message, options=None):
        return f"sync:{message}"


class NamedOnlyStrategy(Strategy):
    name = "test1"

    def post(self, message, options=None):
        return "ok1"


class BrokenUrlStrategy(LinkedEchoStrategy):
    def get_url_from_response(self, response):
        raise ValueError("no url here")


class TestClientConstruction:
    def test_rejects_missing_strategies(self) -> None:
        with pytest.raises(InvalidConfigurationError):
            Client(None)

    def test_rejects_empty_strategies(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="No strategies"):
            Client([])

    def test_rejects_non_sequence(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="sequence"):
            Client("bluesky")

    def test_rejects_non_strategy_items(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="Strategy instance"):
            Client([EchoStrategy("a"), object()])

    def test_strategies_are_immutable(self) -> None:
        strategies = [EchoStrategy("a"), EchoStrategy("b")]
        client = Client(strategies)
        strategies.append(EchoStrategy("c"))

        assert isinstance(client.strategies, tuple)
        assert [s.id for s in client.strategies] == ["a", "b"]


class TestClientPost:
    @pytest.mark.asyncio
    async def test_results_follow_strategy_order(self) -> None:
        client = Client([EchoStrategy("a", response=1), EchoStrategy("b", response=2)])

        results = await client.post("hello")

        assert [r.id for r in results] == ["a", "b"]
        assert [r.response for r in results] == [1, 2]
        assert all(r.ok for r in results)

    @pytest.mark.asyncio
    async def test_order_kept_when_later_strategy_finishes_first(self) -> None:
        client = Client([SlowStrategy("slow", delay=0.05), EchoStrategy("fast")])

        results = await client.post("hello")

        assert [r.id for r in results] == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_passes_message_and_options_through(self) -> None:
        strategy = EchoStrategy("a")
        options = PostOptions(images=[ImageEmbed(data=b"x", alt="alt")])

        await Client([strategy]).post("hello", options)

        assert strategy.calls == [("hello", options)]

    @pytest.mark.asyncio
    async def test_mixed_success_and_failure(self) -> None:
        """One failing platform does not affect the others."""
        error = RuntimeError("boom")
        client = Client(
            [
                EchoStrategy("test1", response="ok1"),
                FailingStrategy("test2", error),
            ]
        )

        results = await client.post("hi")

        assert results[0] == SuccessResult(name="test1", id="test1", response="ok1")
        assert isinstance(results[1], FailureResult)
        assert results[1].ok is False
        assert results[1].name == "test2"
        assert results[1].reason is error

    @pytest.mark.asyncio
    async def test_all_failures_still_return(self) -> None:
        client = Client([FailingStrategy("a"), FailingStrategy("b")])

        results = await client.post("hi")

        assert len(results) == 2
        assert not any(r.ok for r in results)

    @pytest.mark.asyncio
    async def test_result_carries_response_or_reason(self) -> None:
        client = Client([EchoStrategy("a"), FailingStrategy("b")])

        success, failure = await client.post("hi")

        assert hasattr(success, "response") and not hasattr(success, "reason")
        assert hasattr(failure, "reason") and not hasattr(failure, "response")

    @pytest.mark.asyncio
    async def test_sync_strategy_is_settled(self) -> None:
        results = await Client([SyncStrategy()]).post("hi")

        assert results[0].ok is True
        assert results[0].response == "sync:hi"

    @pytest.mark.asyncio
    async def test_url_comes_from_strategy(self) -> None:
        client = Client([LinkedEchoStrategy("a", response="42"), EchoStrategy("b")])

        results = await client.post("hi")

        assert results[0].url == "https://example.com/a/42"
        assert results[1].url is None

    @pytest.mark.asyncio
    async def test_url_failure_keeps_success(self) -> None:
        results = await Client([BrokenUrlStrategy("a")]).post("hi")

        assert results[0].ok is True
        assert results[0].url is None

    @pytest.mark.asyncio
    async def test_url_not_requested_for_failures(self) -> None:
        class FailingLinked(FailingStrategy, ProvidesPostUrl):
            def get_url_from_response(self, response):
                raise AssertionError("should not be called")

        results = await Client([FailingLinked("a")]).post("hi")

        assert results[0].ok is False
        assert isinstance(results[0].reason, RuntimeError)


class TestClientPostTo:
    @pytest.mark.asyncio
    async def test_routes_entries_to_strategies(self) -> None:
        a, b = EchoStrategy("a"), EchoStrategy("b")
        client = Client([a, b])

        results = await client.post_to(
            [PostToEntry(message="for b", strategy_id="b"), PostToEntry(message="for a", strategy_id="a")]
        )

        assert [r.id for r in results] == ["b", "a"]
        assert [call[0] for call in a.calls] == ["for a"]
        assert [call[0] for call in b.calls] == ["for b"]

    @pytest.mark.asyncio
    async def test_images_and_signal_reach_strategy(self) -> None:
        strategy = EchoStrategy("a")
        token = CancellationToken()
        image = ImageEmbed(data=b"img", alt="alt")

        await Client([strategy]).post_to(
            [PostToEntry(message="hi", strategy_id="a", images=(image,))],
            PostToOptions(signal=token),
        )

        _, options = strategy.calls[0]
        assert options.images == (image,)
        assert options.signal is token

    @pytest.mark.asyncio
    async def test_duplicate_ids_run_independently(self) -> None:
        strategy = EchoStrategy("a")

        results = await Client([strategy]).post_to(
            [
                PostToEntry(message="one", strategy_id="a"),
                PostToEntry(message="two", strategy_id="a"),
            ]
        )

        assert len(results) == 2
        assert sorted(call[0] for call in strategy.calls) == ["one", "two"]

    @pytest.mark.asyncio
    async def test_unknown_id_raises(self) -> None:
        strategy = EchoStrategy("a")
        client = Client([strategy])

        with pytest.raises(StrategyNotFoundError, match='"ghost"') as exc_info:
            await client.post_to(
                [
                    PostToEntry(message="hi", strategy_id="a"),
                    PostToEntry(message="hi", strategy_id="ghost"),
                ]
            )

        assert exc_info.value.strategy_id == "ghost"
        assert strategy.calls == []

    @pytest.mark.asyncio
    async def test_unknown_ids_reported_together(self) -> None:
        client = Client([EchoStrategy("a")])

        with pytest.raises(StrategyNotFoundError) as exc_info:
            await client.post_to(
                [
                    PostToEntry(message="hi", strategy_id="ghost"),
                    PostToEntry(message="hi", strategy_id="phantom"),
                    PostToEntry(message="hi", strategy_id="ghost"),
                ]
            )

        assert exc_info.value.strategy_ids == ("ghost", "phantom")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entries", [None, [], "a", [{"message": "hi", "strategy_id": "a"}]])
    async def test_rejects_bad_entries(self, entries) -> None:
        client = Client([EchoStrategy("a")])

        with pytest.raises(InvalidArgumentError):
            await client.post_to(entries)


class TestClientCancellation:
    @pytest.mark.asyncio
    async def test_cancel_fails_every_strategy(self) -> None:
        token = CancellationToken()
        client = Client([SlowStrategy("one"), SlowStrategy("two")])

        asyncio.get_running_loop().call_later(0.01, token.cancel)
        results = await client.post("hi", PostOptions(signal=token))

        assert [r.ok for r in results] == [False, False]
        assert [r.name for r in results] == ["One", "Two"]
        assert all(isinstance(r.reason, PostCancelledError) for r in results)

    @pytest.mark.asyncio
    async def test_cancel_before_post(self) -> None:
        token = CancellationToken()
        token.cancel("Stop")

        results = await Client([SlowStrategy("one")]).post("hi", PostOptions(signal=token))

        assert str(results[0].reason) == "Stop"


class TestStrategyWithoutId:
    @pytest.mark.asyncio
    async def test_post_settles_strategy_without_id(self) -> None:
        results = await Client([NamedOnlyStrategy(), FailingStrategy("test2")]).post("hi")

        assert results[0] == SuccessResult(name="test1", id=None, response="ok1")
        assert results[1].ok is False
        assert results[1].name == "test2"

    @pytest.mark.asyncio
    async def test_post_to_cannot_address_strategy_without_id(self) -> None:
        client = Client([NamedOnlyStrategy()])

        with pytest.raises(StrategyNotFoundError):
            await client.post_to([PostToEntry(message="hi", strategy_id="test1")])
