"""
Factory for creating strategy instances.

Builds the strategy for a platform id from the environment settings.
"""

from collections.abc import Iterable

from ..config import Settings, settings as default_settings
from ..domain.errors import StrategyNotFoundError
from ..domain.ports import Strategy
from ..strategies import (
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

STRATEGY_IDS = (
    "bluesky",
    "mastodon",
    "discord",
    "discord-webhook",
    "telegram",
    "devto",
    "linkedin",
    "threads",
    "slack",
    "webflow",
    "facebook",
    "instagram",
    "twitter",
    "x",
)


class StrategyFactory:
    """
    Factory for creating strategy instances.

    Strategy constructors validate their own credentials, so a platform with
    missing settings raises InvalidConfigurationError when it is created.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or default_settings

    def create(self, strategy_id: str) -> Strategy:
        """
        Create the strategy for a platform id.

        Raises:
            StrategyNotFoundError: If the id names no known platform
            InvalidConfigurationError: If the platform's settings are incomplete
        """
        s = self._settings
        timeout = s.http_timeout

        match strategy_id:
            case "bluesky":
                return BlueskyStrategy(
                    identifier=s.bluesky_identifier,
                    password=s.bluesky_password,
                    host=s.bluesky_host,
                    timeout=timeout,
                )
            case "mastodon":
                return MastodonStrategy(
                    access_token=s.mastodon_access_token,
                    host=s.mastodon_host,
                    timeout=timeout,
                )
            case "discord":
                return DiscordStrategy(
                    bot_token=s.discord_bot_token,
                    channel_id=s.discord_channel_id,
                    timeout=timeout,
                )
            case "discord-webhook":
                return DiscordWebhookStrategy(
                    webhook_url=s.discord_webhook_url,
                    timeout=timeout,
                )
            case "telegram":
                return TelegramStrategy(
                    bot_token=s.telegram_bot_token,
                    chat_id=s.telegram_chat_id,
                    timeout=timeout,
                )
            case "devto":
                return DevtoStrategy(api_key=s.devto_api_key, timeout=timeout)
            case "linkedin":
                return LinkedInStrategy(
                    access_token=s.linkedin_access_token,
                    organization_id=s.linkedin_organization_id or None,
                    timeout=timeout,
                )
            case "threads":
                return ThreadsStrategy(
                    access_token=s.threads_access_token,
                    user_id=s.threads_user_id,
                    timeout=timeout,
                )
            case "slack":
                return SlackStrategy(
                    bot_token=s.slack_bot_token,
                    channel=s.slack_channel,
                    timeout=timeout,
                )
            case "webflow":
                return WebflowStrategy(
                    access_token=s.webflow_access_token,
                    site_id=s.webflow_site_id,
                    collection_id=s.webflow_collection_id,
                    timeout=timeout,
                )
            case "facebook":
                return FacebookStrategy(
                    access_token=s.facebook_access_token,
                    page_id=s.facebook_page_id or None,
                    timeout=timeout,
                )
            case "instagram":
                return InstagramStrategy(
                    access_token=s.instagram_access_token,
                    instagram_account_id=s.instagram_account_id,
                    timeout=timeout,
                )
            case "twitter":
                return TwitterStrategy(
                    api_consumer_key=s.twitter_api_consumer_key,
                    api_consumer_secret=s.twitter_api_consumer_secret,
                    access_token_key=s.twitter_access_token_key,
                    access_token_secret=s.twitter_access_token_secret,
                )
            case "x":
                return XStrategy(access_token=s.x_access_token, timeout=timeout)
            case _:
                raise StrategyNotFoundError([strategy_id])

    def create_many(self, strategy_ids: Iterable[str]) -> list[Strategy]:
        """Create strategies in order, rejecting every unknown id at once."""
        ids = list(strategy_ids)
        unknown = [sid for sid in dict.fromkeys(ids) if sid not in STRATEGY_IDS]
        if unknown:
            raise StrategyNotFoundError(unknown)
        return [self.create(sid) for sid in ids]
