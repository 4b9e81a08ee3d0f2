"""
Broadcast cancellation for in-flight posts.

A single CancellationToken is shared by reference across every strategy
call of one Client.post/post_to invocation. Each strategy decides how to
observe it; the client never aborts a strategy on its own.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from .domain.errors import PostCancelledError

logger = structlog.get_logger()

T = TypeVar("T")

Listener = Callable[["CancellationToken"], None]


class CancellationToken:
    """
    Cooperative cancellation handle with any number of listeners.

    Usage:
        token = CancellationToken()
        loop.call_later(5, token.cancel)
        results = await client.post("Hello", PostOptions(signal=token))
    """

    DEFAULT_REASON = "Post cancelled."

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None
        self._listeners: list[Listener] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = DEFAULT_REASON) -> None:
        """Trigger cancellation. Calling again has no effect."""
        if self.cancelled:
            return

        self._reason = reason
        self._event.set()
        logger.info("Cancellation requested", reason=reason)

        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(self)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback run once on cancellation.

        A listener added after cancellation runs immediately.

        Returns:
            A function that unregisters the listener
        """
        if self.cancelled:
            listener(self)
            return lambda: None

        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise PostCancelledError(self._reason)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """
        Await `awaitable` unless the token fires first.

        Raises:
            PostCancelledError: If cancelled before the awaitable finished
        """
        if self.cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise PostCancelledError(self._reason)

        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise PostCancelledError(self._reason)


async def cancellable(awaitable: Awaitable[T], signal: CancellationToken | None) -> T:
    """Await `awaitable`, racing it against `signal` when one is given."""
    if signal is None:
        return await awaitable
    return await signal.guard(awaitable)
