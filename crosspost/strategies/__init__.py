"""Platform strategies."""

from .bluesky import BlueskyStrategy
from .devto import DevtoStrategy
from .discord import DiscordStrategy
from .discord_webhook import DiscordWebhookStrategy
from .facebook import FacebookStrategy
from .instagram import InstagramStrategy
from .linkedin import LinkedInStrategy
from .mastodon import MastodonStrategy
from .slack import SlackStrategy
from .telegram import TelegramStrategy
from .threads import ThreadsStrategy
from .twitter import TwitterStrategy
from .webflow import WebflowStrategy
from .x import XStrategy

__all__ = [
    "BlueskyStrategy",
    "DevtoStrategy",
    "DiscordStrategy",
    "DiscordWebhookStrategy",
    "FacebookStrategy",
    "InstagramStrategy",
    "LinkedInStrategy",
    "MastodonStrategy",
    "SlackStrategy",
    "TelegramStrategy",
    "ThreadsStrategy",
    "TwitterStrategy",
    "WebflowStrategy",
    "XStrategy",
]
