import httpx
import structlog

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import PostOptions, ProvidesPostUrl, Strategy
from .base import DEFAULT_TIMEOUT, USER_AGENT, api_error, validate_post_options

logger = structlog.get_logger()

TWEET_URL = "https://api.x.com/2/tweets"


def tweet_url(response: dict) -> str:
    """Link to a post from an X API v2 create response."""
    tweet_id = ((response or {}).get("data") or {}).get("id")
    if not tweet_id:
        raise ValueError("Tweet ID not found in response")
    return f"https://x.com/i/web/status/{tweet_id}"


class XStrategy(Strategy, ProvidesPostUrl):
    """X API v2 strategy using an OAuth 2.0 user access token."""

    id = "x"
    name = "X"
    MAX_MESSAGE_LENGTH = 280

    def __init__(self, access_token: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing access token.")

        self._access_token = access_token
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        if options and options.images:
            logger.warning("X images not supported, posting text only")

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await cancellable(
                    client.post(
                        TWEET_URL,
                        headers={
                            "Authorization": f"Bearer {self._access_token}",
                            "User-Agent": USER_AGENT,
                        },
                        json={"text": message},
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post tweet", e, "detail") from e

        logger.info("X post created", tweet_id=(data.get("data") or {}).get("id"))
        return data

    def get_url_from_response(self, response: dict) -> str:
        return tweet_url(response)
