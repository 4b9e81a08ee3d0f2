import httpx
import structlog

from ..cancellation import CancellationToken, cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError, StrategyError
from ..domain.ports import ImageEmbed, PostOptions, ProvidesPostUrl, Strategy
from .base import (
    DEFAULT_TIMEOUT,
    USER_AGENT,
    api_error,
    get_image_mime_type,
    run_all,
    validate_post_options,
)

logger = structlog.get_logger()

API_BASE = "https://slack.com/api"


class SlackStrategy(Strategy, ProvidesPostUrl):
    """
    Slack Web API strategy for posting to a channel as a bot.

    Images are uploaded as files and linked from the message text.
    """

    id = "slack"
    name = "Slack"
    MAX_MESSAGE_LENGTH = 4000

    def __init__(
        self,
        bot_token: str,
        channel: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not bot_token:
            raise InvalidConfigurationError("Missing bot token.")
        if not channel:
            raise InvalidConfigurationError("Missing channel.")

        self._bot_token = bot_token
        self._channel = channel
        self._timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._bot_token}",
            "User-Agent": USER_AGENT,
        }

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()
        text = message

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                if images:
                    links = await run_all(
                        self._upload_image(client, image, index, signal)
                        for index, image in enumerate(images, start=1)
                    )
                    text = f"{message}\n\n" + "\n".join(links)

                response = await cancellable(
                    client.post(
                        f"{API_BASE}/chat.postMessage",
                        headers=self._headers,
                        json={"channel": self._channel, "text": text},
                    ),
                    signal,
                )
                response.raise_for_status()
                data = self._check_ok(response.json(), "Failed to post message")

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post message", e, "error") from e

        logger.info("Slack message posted", channel=data.get("channel"), ts=data.get("ts"))
        return data

    async def _upload_image(
        self,
        client: httpx.AsyncClient,
        image: ImageEmbed,
        index: int,
        signal: CancellationToken | None,
    ) -> str:
        """Upload one image and return the line linking to it."""
        mime_type = get_image_mime_type(image.data)
        filename = f"image{index}.{mime_type.split('/')[1]}"

        form = {"filename": filename, "length": str(len(image.data))}
        if image.alt:
            form["alt_text"] = image.alt

        response = await cancellable(
            client.post(
                f"{API_BASE}/files.getUploadURLExternal",
                headers=self._headers,
                data=form,
            ),
            signal,
        )
        response.raise_for_status()
        upload = self._check_ok(response.json(), "Failed to get upload URL")

        response = await cancellable(
            client.post(
                upload["upload_url"],
                headers={"User-Agent": USER_AGENT, "Content-Type": mime_type},
                content=image.data,
            ),
            signal,
        )
        response.raise_for_status()

        response = await cancellable(
            client.post(
                f"{API_BASE}/files.completeUploadExternal",
                headers=self._headers,
                json={"files": [{"id": upload["file_id"], "title": filename}]},
            ),
            signal,
        )
        response.raise_for_status()
        completed = self._check_ok(response.json(), "Failed to complete upload")

        permalink = completed["files"][0]["permalink"]
        return f"{image.alt}: {permalink}" if image.alt else permalink

    def _check_ok(self, data: dict, action: str) -> dict:
        # Slack reports most failures as HTTP 200 with ok=false
        if not data.get("ok"):
            message = f"{self.name} API error: {action}: {data.get('error', 'unknown_error')}"
            logger.error("Strategy request failed", platform=self.name, error=message)
            raise StrategyError(message, platform=self.name)
        return data

    def get_url_from_response(self, response: dict) -> str:
        channel = (response or {}).get("channel")
        ts = (response or {}).get("ts")
        if not channel or not ts:
            raise ValueError("Channel or message timestamp not found in response")
        return f"https://slack.com/app_redirect?channel={channel}&message_ts={ts}"
