from collections.abc import Awaitable, Callable

import httpx
import structlog

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError, StrategyError
from ..domain.ports import ImageEmbed, PostOptions, ProvidesPostUrl, Strategy
from .base import DEFAULT_TIMEOUT, USER_AGENT, api_error, validate_post_options

logger = structlog.get_logger()

ImageUploader = Callable[[ImageEmbed], Awaitable[str]]


class InstagramStrategy(Strategy, ProvidesPostUrl):
    """
    Instagram Graph API strategy for single-image posts.

    The Graph API only accepts images by public URL, so an `upload_image`
    callable must host the image and return its URL.
    """

    id = "instagram"
    name = "Instagram"
    MAX_MESSAGE_LENGTH = 2200

    BASE_URL = "https://graph.facebook.com/v21.0"

    def __init__(
        self,
        access_token: str,
        instagram_account_id: str,
        upload_image: ImageUploader | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing Instagram access token.")
        if not instagram_account_id:
            raise InvalidConfigurationError("Missing Instagram account ID.")

        self._access_token = access_token
        self._account_id = instagram_account_id
        self._upload_image = upload_image
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """Create a media container for the image, then publish it."""
        if not message:
            raise InvalidArgumentError("Missing message for Instagram post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        if not images:
            raise InvalidArgumentError("Instagram requires an image; text-only posts are not supported.")
        if len(images) > 1:
            raise InvalidArgumentError("Instagram supports only single image posts.")
        if self._upload_image is None:
            raise StrategyError(
                "Instagram needs the image at a public URL; no image uploader configured.",
                platform=self.name,
            )

        image_url = await cancellable(self._upload_image(images[0]), signal)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                # Step 1: Create media container
                response = await cancellable(
                    client.post(
                        f"{self.BASE_URL}/{self._account_id}/media",
                        headers={"User-Agent": USER_AGENT},
                        data={
                            "image_url": image_url,
                            "caption": message,
                            "access_token": self._access_token,
                        },
                    ),
                    signal,
                )
                response.raise_for_status()
                container_id = response.json()["id"]

                # Step 2: Publish the container
                response = await cancellable(
                    client.post(
                        f"{self.BASE_URL}/{self._account_id}/media_publish",
                        headers={"User-Agent": USER_AGENT},
                        data={
                            "creation_id": container_id,
                            "access_token": self._access_token,
                        },
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to publish media", e, "error", "message") from e

        logger.info("Instagram post published", media_id=data.get("id"))
        return data

    def get_url_from_response(self, response: dict) -> str:
        media_id = (response or {}).get("id")
        if not media_id:
            raise ValueError("Instagram media ID not found in response")
        return f"https://www.instagram.com/p/{media_id}"
