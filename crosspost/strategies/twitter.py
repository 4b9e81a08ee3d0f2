import asyncio

import structlog
import tweepy

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError, StrategyError
from ..domain.ports import PostOptions, ProvidesPostUrl, Strategy
from .base import validate_post_options
from .x import tweet_url

logger = structlog.get_logger()


class TwitterStrategy(Strategy, ProvidesPostUrl):
    """
    Twitter strategy using OAuth 1.0a user credentials.

    tweepy signs the requests; its client is blocking, so calls run in a
    worker thread.
    """

    id = "twitter"
    name = "Twitter"
    MAX_MESSAGE_LENGTH = 280

    def __init__(
        self,
        api_consumer_key: str,
        api_consumer_secret: str,
        access_token_key: str,
        access_token_secret: str,
    ) -> None:
        if not access_token_key:
            raise InvalidConfigurationError("Missing Twitter access token key.")
        if not access_token_secret:
            raise InvalidConfigurationError("Missing Twitter access token secret.")
        if not api_consumer_key:
            raise InvalidConfigurationError("Missing Twitter consumer key.")
        if not api_consumer_secret:
            raise InvalidConfigurationError("Missing Twitter consumer secret.")

        self._client = tweepy.Client(
            consumer_key=api_consumer_key,
            consumer_secret=api_consumer_secret,
            access_token=access_token_key,
            access_token_secret=access_token_secret,
        )

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to tweet.")
        validate_post_options(options)

        signal = options.signal if options else None
        if options and options.images:
            logger.warning("Twitter images not supported, posting text only")

        try:
            response = await cancellable(
                asyncio.to_thread(self._client.create_tweet, text=message),
                signal,
            )
        except tweepy.HTTPException as e:
            status_code = e.response.status_code
            detail = "; ".join(e.api_messages)
            error = f"{self.name} API error: {status_code} Failed to post tweet"
            if detail:
                error = f"{error}: {detail}"
            logger.error("Strategy request failed", platform=self.name, status_code=status_code, error=error)
            raise StrategyError(error, platform=self.name, status_code=status_code) from e

        data = dict(response.data or {})
        logger.info("Twitter post created", tweet_id=data.get("id"))
        return {"data": data}

    def get_url_from_response(self, response: dict) -> str:
        return tweet_url(response)
