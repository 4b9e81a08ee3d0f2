"""
Outbound port for platform strategies.

This is the interface the client uses to post to a platform.
Each platform adapter in crosspost.strategies implements it.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ...cancellation import CancellationToken

MAX_IMAGES = 4


@dataclass(frozen=True)
class ImageEmbed:
    """An image attached to a post."""

    data: bytes
    alt: str | None = None


@dataclass(frozen=True)
class PostOptions:
    """Options passed through to every strategy's post call."""

    images: tuple[ImageEmbed, ...] = ()
    signal: "CancellationToken | None" = None

    def __post_init__(self) -> None:
        # Normalize lists so callers can pass either
        object.__setattr__(self, "images", tuple(self.images or ()))
        if len(self.images) > MAX_IMAGES:
            raise ValueError(f"A post cannot have more than {MAX_IMAGES} images")


class Strategy(ABC):
    """
    Outbound port for posting a message to one platform.

    Subclasses set `name` (display name) and usually `id` (stable machine
    identifier; needed for post_to), and validate their credentials in
    __init__.
    """

    id: str
    name: str
    MAX_MESSAGE_LENGTH: float = math.inf

    @abstractmethod
    async def post(self, message: str, options: PostOptions | None = None) -> Any:
        """
        Post a message to the platform.

        Args:
            message: Message text
            options: Optional images and cancellation token

        Returns:
            The platform's parsed response

        Raises:
            StrategyError: If the platform rejects the request
        """
        ...

    def calculate_message_length(self, message: str) -> int:
        """Length of `message` as the platform counts it."""
        return len(message)


class ProvidesPostUrl(ABC):
    """Optional capability: derive a public URL from a post response."""

    @abstractmethod
    def get_url_from_response(self, response: Any) -> str:
        ...
