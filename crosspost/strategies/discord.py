import json

import httpx
import structlog

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import ImageEmbed, PostOptions, ProvidesPostUrl, Strategy
from .base import (
    DEFAULT_TIMEOUT,
    USER_AGENT,
    api_error,
    get_image_mime_type,
    image_filename,
    validate_post_options,
)

logger = structlog.get_logger()

API_BASE = "https://discord.com/api/v10"


def build_message_request(message: str, images: tuple[ImageEmbed, ...]) -> dict:
    """
    Keyword arguments for an httpx request creating a Discord message.

    Text-only messages are sent as JSON; messages with images are sent as
    multipart with a payload_json part describing the attachments.
    """
    if not images:
        return {"json": {"content": message}}

    attachments = []
    files = []
    for index, image in enumerate(images):
        filename = image_filename(image.data, stem=f"image{index}")
        attachment = {"id": index, "filename": filename}
        if image.alt:
            attachment["description"] = image.alt
        attachments.append(attachment)
        files.append(
            (f"files[{index}]", (filename, image.data, get_image_mime_type(image.data)))
        )

    return {
        "data": {"payload_json": json.dumps({"content": message, "attachments": attachments})},
        "files": files,
    }


def message_url(response: dict) -> str:
    """Link to a Discord message from its API representation."""
    if not response or not response.get("id") or not response.get("channel_id"):
        raise ValueError("Message ID or channel ID not found in response")

    guild = response.get("guild_id") or "@me"
    return f"https://discord.com/channels/{guild}/{response['channel_id']}/{response['id']}"


class DiscordStrategy(Strategy, ProvidesPostUrl):
    """Discord bot strategy for posting to a channel."""

    id = "discord"
    name = "Discord Bot"
    MAX_MESSAGE_LENGTH = 2000

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not bot_token:
            raise InvalidConfigurationError("Missing bot token.")
        if not channel_id:
            raise InvalidConfigurationError("Missing channel ID.")

        self._bot_token = bot_token
        self._channel_id = channel_id
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await cancellable(
                    client.post(
                        f"{API_BASE}/channels/{self._channel_id}/messages",
                        headers={
                            "Authorization": f"Bot {self._bot_token}",
                            "User-Agent": USER_AGENT,
                        },
                        **build_message_request(message, images),
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post message", e, "message") from e

        logger.info("Discord message posted", message_id=data.get("id"))
        return data

    def get_url_from_response(self, response: dict) -> str:
        return message_url(response)
