import httpx
import structlog

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import PostOptions, ProvidesPostUrl, Strategy
from .base import (
    DEFAULT_TIMEOUT,
    USER_AGENT,
    api_error,
    get_image_mime_type,
    image_filename,
    validate_post_options,
)

logger = structlog.get_logger()


class FacebookStrategy(Strategy, ProvidesPostUrl):
    """
    Facebook Graph API strategy for feed posts.

    Posts to the page given by `page_id`, or to the token owner's own feed.
    Only the first image is attached.
    """

    id = "facebook"
    name = "Facebook"
    MAX_MESSAGE_LENGTH = 63206

    BASE_URL = "https://graph.facebook.com/v18.0"

    def __init__(
        self,
        access_token: str,
        page_id: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing access token.")

        self._access_token = access_token
        self._page_id = page_id or "me"
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        url = f"{self.BASE_URL}/{self._page_id}/feed"
        payload = {
            "message": message,
            "access_token": self._access_token,
        }
        files = None

        if images:
            # Photo posts go through /photos with the image as "source"
            image = images[0]
            url = f"{self.BASE_URL}/{self._page_id}/photos"
            files = {
                "source": (
                    image_filename(image.data),
                    image.data,
                    get_image_mime_type(image.data),
                )
            }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await cancellable(
                    client.post(
                        url,
                        headers={"User-Agent": USER_AGENT},
                        data=payload,
                        files=files,
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to create post", e, "error", "message") from e

        logger.info("Facebook post created", post_id=data.get("post_id") or data.get("id"))
        return data

    def get_url_from_response(self, response: dict) -> str:
        if not (response or {}).get("id"):
            raise ValueError("Post ID not found in response")

        post_id = response.get("post_id") or response["id"]
        if "_" in post_id:
            owner_id, actual_id = post_id.split("_", 1)
            return f"https://www.facebook.com/{owner_id}/posts/{actual_id}"
        return f"https://www.facebook.com/posts/{post_id}"
