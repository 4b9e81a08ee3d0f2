"""
Fan-out client.

Posts one message to every configured strategy (or a chosen subset) at
once and reports a SuccessResult or FailureResult per target. A failing
platform never prevents the others from being reported.
"""

import asyncio
import inspect
import uuid
from collections.abc import Sequence
from typing import Any

import structlog

from .domain.errors import (
    InvalidArgumentError,
    InvalidConfigurationError,
    StrategyNotFoundError,
)
from .domain.ports import (
    FailureResult,
    PostOptions,
    PostToEntry,
    PostToOptions,
    ProvidesPostUrl,
    Publisher,
    Result,
    Strategy,
    SuccessResult,
)
from .infrastructure.logging import (
    Timer,
    correlation_id,
    get_correlation_id,
    set_correlation_id,
)

logger = structlog.get_logger()


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))


def _strategy_id(strategy: Strategy) -> str | None:
    # id is optional; strategies without one can only be reached through post()
    return getattr(strategy, "id", None)


class Client(Publisher):
    """
    Posts messages through a fixed set of strategies.

    The strategy list is validated once here and never changes afterwards.
    Strategies validate their own credentials.
    """

    def __init__(self, strategies: Sequence[Strategy] | None) -> None:
        if not _is_sequence(strategies):
            raise InvalidConfigurationError("strategies must be a sequence.")

        if not strategies:
            raise InvalidConfigurationError("No strategies provided.")

        for strategy in strategies:
            if not isinstance(strategy, Strategy):
                raise InvalidConfigurationError(
                    f"Expected a Strategy instance, got {type(strategy).__name__}."
                )

        self._strategies: tuple[Strategy, ...] = tuple(strategies)

        # First strategy wins when ids repeat
        self._by_id: dict[str, Strategy] = {}
        for strategy in self._strategies:
            strategy_id = _strategy_id(strategy)
            if strategy_id is not None:
                self._by_id.setdefault(strategy_id, strategy)

    @property
    def strategies(self) -> tuple[Strategy, ...]:
        return self._strategies

    async def post(
        self,
        message: str,
        options: PostOptions | None = None,
    ) -> list[Result]:
        """
        Post a message using every strategy.

        Args:
            message: The message to post
            options: Images and cancellation token, passed to every strategy as-is

        Returns:
            One result per strategy, in configuration order
        """
        calls = [(strategy, message, options) for strategy in self._strategies]
        return await self._dispatch(calls)

    async def post_to(
        self,
        entries: Sequence[PostToEntry],
        options: PostToOptions | None = None,
    ) -> list[Result]:
        """
        Post messages using specific strategies.

        Args:
            entries: Messages and the ids of the strategies to post them with
            options: Cancellation token shared by every entry

        Returns:
            One result per entry, in entry order

        Raises:
            InvalidArgumentError: If entries is not a non-empty sequence of PostToEntry
            StrategyNotFoundError: If any entry names an unconfigured strategy
        """
        if not _is_sequence(entries):
            raise InvalidArgumentError("Expected a sequence of entries.")

        if not entries:
            raise InvalidArgumentError("Expected at least one entry.")

        for entry in entries:
            if not isinstance(entry, PostToEntry):
                raise InvalidArgumentError(
                    f"Expected a PostToEntry, got {type(entry).__name__}."
                )

        # Resolve every id before posting anything
        missing = [e.strategy_id for e in entries if e.strategy_id not in self._by_id]
        if missing:
            raise StrategyNotFoundError(list(dict.fromkeys(missing)))

        signal = options.signal if options else None
        calls = [
            (
                self._by_id[entry.strategy_id],
                entry.message,
                PostOptions(images=entry.images, signal=signal),
            )
            for entry in entries
        ]
        return await self._dispatch(calls)

    async def _dispatch(
        self,
        calls: list[tuple[Strategy, str, PostOptions | None]],
    ) -> list[Result]:
        """Run every call concurrently and wait for all of them to settle."""
        token = None
        if not get_correlation_id():
            token = set_correlation_id(uuid.uuid4().hex)

        try:
            logger.info(
                "Posting message",
                strategies=[_strategy_id(strategy) or strategy.name for strategy, _, _ in calls],
            )

            with Timer() as timer:
                # Each settle call swallows its strategy's error, so gather never short-circuits
                results = await asyncio.gather(
                    *(self._settle(strategy, msg, opts) for strategy, msg, opts in calls)
                )

            succeeded = sum(1 for result in results if result.ok)
            logger.info(
                "Post completed",
                succeeded=succeeded,
                failed=len(results) - succeeded,
                duration_ms=timer.duration_ms,
            )
            return list(results)
        finally:
            if token is not None:
                correlation_id.reset(token)

    async def _settle(
        self,
        strategy: Strategy,
        message: str,
        options: PostOptions | None,
    ) -> Result:
        """Call one strategy and wrap its outcome into a result."""
        try:
            response = strategy.post(message, options)
            if inspect.isawaitable(response):
                response = await response
        except Exception as e:
            logger.warning(
                "Strategy post failed",
                strategy=_strategy_id(strategy) or strategy.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return FailureResult(name=strategy.name, id=_strategy_id(strategy), reason=e)

        return SuccessResult(
            name=strategy.name,
            id=_strategy_id(strategy),
            response=response,
            url=self._get_url(strategy, response),
        )

    def _get_url(self, strategy: Strategy, response: Any) -> str | None:
        """Ask the strategy for the post URL; a failed lookup leaves it unset."""
        if not isinstance(strategy, ProvidesPostUrl):
            return None

        try:
            return strategy.get_url_from_response(response)
        except Exception as e:
            logger.warning(
                "Could not determine post URL",
                strategy=_strategy_id(strategy) or strategy.name,
                error=str(e),
            )
            return None
