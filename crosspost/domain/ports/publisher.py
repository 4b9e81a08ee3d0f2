"""
Inbound port for multi-platform publishing.

Defines the request and result types of a fan-out post. The Client
implements Publisher.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Literal, TypeVar

from .strategy import ImageEmbed, PostOptions

if TYPE_CHECKING:
    from ...cancellation import CancellationToken

ResponseT = TypeVar("ResponseT")


@dataclass(frozen=True)
class PostToEntry:
    """A message addressed to one configured strategy."""

    message: str
    strategy_id: str
    images: tuple[ImageEmbed, ...] = ()


@dataclass(frozen=True)
class PostToOptions:
    """Options shared by every entry of a post_to call."""

    signal: "CancellationToken | None" = None


@dataclass(frozen=True)
class SuccessResult(Generic[ResponseT]):
    """A strategy's post succeeded."""

    name: str
    response: ResponseT
    id: str | None = None
    url: str | None = None
    ok: Literal[True] = field(default=True, init=False)


@dataclass(frozen=True)
class FailureResult:
    """A strategy's post raised; `reason` is the exception, unchanged."""

    name: str
    reason: Exception
    id: str | None = None
    ok: Literal[False] = field(default=False, init=False)


Result = SuccessResult | FailureResult


class Publisher(ABC):
    """
    Inbound port for posting to several platforms at once.

    Implementations report one result per target and never raise for a
    single platform's failure.
    """

    @abstractmethod
    async def post(
        self,
        message: str,
        options: PostOptions | None = None,
    ) -> list[Result]:
        """Post `message` to every configured strategy."""
        ...

    @abstractmethod
    async def post_to(
        self,
        entries: Sequence[PostToEntry],
        options: PostToOptions | None = None,
    ) -> list[Result]:
        """Post each entry's message to the strategy it names."""
        ...
