import base64
import math

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
    validate_post_options,
)

logger = structlog.get_logger()

API_URL = "https://dev.to/api"


def _image_markdown(image: ImageEmbed) -> str:
    encoded = base64.b64encode(image.data).decode("ascii")
    mime_type = get_image_mime_type(image.data)
    return f"![{image.alt or ''}](data:{mime_type};base64,{encoded})"


def _title(message: str) -> str:
    """First non-blank line of the message."""
    return next((line.strip() for line in message.splitlines() if line.strip()), message)


class DevtoStrategy(Strategy, ProvidesPostUrl):
    """
    Dev.to strategy that publishes the message as an article.

    The first line of the message becomes the title and the whole
    message the markdown body.
    """

    id = "devto"
    name = "Dev.to"
    MAX_MESSAGE_LENGTH = math.inf

    def __init__(self, api_key: str, timeout: float = DEFAULT_TIMEOUT) -> None:
        if not api_key:
            raise InvalidConfigurationError("Missing apiKey.")

        self._api_key = api_key
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        body = message
        if images:
            body += "\n\n" + "\n\n".join(_image_markdown(image) for image in images) + "\n\n"

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await cancellable(
                    client.post(
                        f"{API_URL}/articles",
                        headers={"api-key": self._api_key, "User-Agent": USER_AGENT},
                        json={
                            "article": {
                                "title": _title(message),
                                "body_markdown": body,
                                "published": True,
                            }
                        },
                    ),
                    signal,
                )
                response.raise_for_status()
                article = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post article", e, "error") from e

        logger.info("Dev.to article published", article_id=article.get("id"))
        return article

    def get_url_from_response(self, response: dict) -> str:
        if not response or not response.get("id"):
            raise ValueError("Article ID not found in response")

        return (
            response.get("url")
            or response.get("canonical_url")
            or f"https://dev.to/articles/{response['id']}"
        )
