import httpx
import structlog

from ..cancellation import CancellationToken, cancellable
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

API_BASE = "https://api.telegram.org/bot"


class TelegramStrategy(Strategy, ProvidesPostUrl):
    """Telegram Bot API strategy."""

    id = "telegram"
    name = "Telegram"
    MAX_MESSAGE_LENGTH = 4096

    def __init__(
        self,
        bot_token: str,
        chat_id: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not bot_token:
            raise InvalidConfigurationError("Missing bot token.")
        if not chat_id:
            raise InvalidConfigurationError("Missing chat ID.")

        self._bot_token = bot_token
        self._chat_id = chat_id
        self._timeout = timeout

    def _url(self, method: str) -> str:
        return f"{API_BASE}{self._bot_token}/{method}"

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """
        Send the message, then each image as its own photo message.

        Returns the response for the text message.
        """
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await cancellable(
                    client.post(
                        self._url("sendMessage"),
                        headers={"User-Agent": USER_AGENT},
                        json={"chat_id": self._chat_id, "text": message},
                    ),
                    signal,
                )
                response.raise_for_status()
                sent = response.json()

                for image in images:
                    await self._send_photo(client, image, signal)

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post message", e, "description") from e

        logger.info(
            "Telegram message sent",
            message_id=sent.get("result", {}).get("message_id"),
            images=len(images),
        )
        return sent

    async def _send_photo(
        self,
        client: httpx.AsyncClient,
        image: ImageEmbed,
        signal: CancellationToken | None,
    ) -> dict:
        response = await cancellable(
            client.post(
                self._url("sendPhoto"),
                headers={"User-Agent": USER_AGENT},
                data={"chat_id": self._chat_id, "caption": image.alt or "Image"},
                files={
                    "photo": (
                        image_filename(image.data),
                        image.data,
                        get_image_mime_type(image.data),
                    )
                },
            ),
            signal,
        )
        response.raise_for_status()
        return response.json()

    def get_url_from_response(self, response: dict) -> str:
        result = (response or {}).get("result") or {}
        message_id = result.get("message_id")
        chat_id = (result.get("chat") or {}).get("id")
        if not message_id or not chat_id:
            raise ValueError("Message ID or Chat ID not found in response")

        # Supergroup and channel ids carry a -100 prefix that t.me links omit
        chat = str(chat_id).replace("-100", "", 1)
        return f"https://t.me/c/{chat}/{message_id}"
