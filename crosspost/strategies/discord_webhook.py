import httpx
import structlog

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import PostOptions, ProvidesPostUrl, Strategy
from ..infrastructure.logging import sanitize_for_logging
from .base import DEFAULT_TIMEOUT, USER_AGENT, api_error, validate_post_options
from .discord import build_message_request, message_url

logger = structlog.get_logger()


class DiscordWebhookStrategy(Strategy, ProvidesPostUrl):
    """Discord webhook strategy; needs no bot account."""

    id = "discord-webhook"
    name = "Discord Webhook"
    MAX_MESSAGE_LENGTH = 2000

    def __init__(self, webhook_url: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        if not webhook_url:
            raise InvalidConfigurationError("Missing webhook URL.")

        self._webhook_url = webhook_url
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                # wait=true makes Discord return the created message
                response = await cancellable(
                    client.post(
                        self._webhook_url,
                        params={"wait": "true"},
                        headers={"User-Agent": USER_AGENT},
                        **build_message_request(message, images),
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post message", e, "message") from e

        logger.info(
            "Discord webhook message posted",
            message_id=data.get("id"),
            webhook=sanitize_for_logging(self._webhook_url, visible_chars=40),
        )
        return data

    def get_url_from_response(self, response: dict) -> str:
        return message_url(response)
