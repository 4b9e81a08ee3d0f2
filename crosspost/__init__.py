"""Post one message to many social platforms at once."""

__version__ = "0.1.0"

from .cancellation import CancellationToken
from .client import Client
from .domain.errors import (
    CrosspostError,
    InvalidArgumentError,
    InvalidConfigurationError,
    PostCancelledError,
    StrategyError,
    StrategyNotFoundError,
)
from .domain.ports import (
    MAX_IMAGES,
    FailureResult,
    ImageEmbed,
    PostOptions,
    PostToEntry,
    PostToOptions,
    ProvidesPostUrl,
    Result,
    Strategy,
    SuccessResult,
)
from .facets import detect_facets
from .strategies import (
    BlueskyStrategy,
    DevtoStrategy,
    DiscordStrategy,
    DiscordWebhookStrategy,
    FacebookStrategy,
    InstagramStrategy,
    LinkedInStrategy,
    MastodonStrategy,
    SlackStrategy,
    TelegramStrategy,
    ThreadsStrategy,
    TwitterStrategy,
    WebflowStrategy,
    XStrategy,
)

__all__ = [
    "MAX_IMAGES",
    "BlueskyStrategy",
    "CancellationToken",
    "Client",
    "CrosspostError",
    "DevtoStrategy",
    "DiscordStrategy",
    "DiscordWebhookStrategy",
    "FacebookStrategy",
    "FailureResult",
    "ImageEmbed",
    "InstagramStrategy",
    "InvalidArgumentError",
    "InvalidConfigurationError",
    "LinkedInStrategy",
    "MastodonStrategy",
    "PostCancelledError",
    "PostOptions",
    "PostToEntry",
    "PostToOptions",
    "ProvidesPostUrl",
    "Result",
    "SlackStrategy",
    "Strategy",
    "StrategyError",
    "StrategyNotFoundError",
    "SuccessResult",
    "TelegramStrategy",
    "ThreadsStrategy",
    "TwitterStrategy",
    "WebflowStrategy",
    "XStrategy",
    "__version__",
    "detect_facets",
]
