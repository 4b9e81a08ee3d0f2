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
    run_all,
    validate_post_options,
)

logger = structlog.get_logger()


class MastodonStrategy(Strategy, ProvidesPostUrl):
    """Mastodon API strategy for posting statuses."""

    id = "mastodon"
    name = "Mastodon"
    MAX_MESSAGE_LENGTH = 500

    def __init__(
        self,
        access_token: str,
        host: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing Mastodon access token.")
        if not host:
            raise InvalidConfigurationError("Missing Mastodon host.")

        self._access_token = access_token
        self._host = host
        self._timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "User-Agent": USER_AGENT,
        }

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """Post a status, uploading any images first."""
        if not message:
            raise InvalidArgumentError("Missing message to toot.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                media_ids = await run_all(
                    self._upload_media(client, image, signal) for image in images
                )

                data: dict[str, str | list[str]] = {"status": message}
                if media_ids:
                    data["media_ids[]"] = list(media_ids)

                response = await cancellable(
                    client.post(
                        f"https://{self._host}/api/v1/statuses",
                        headers=self._headers,
                        data=data,
                    ),
                    signal,
                )
                response.raise_for_status()
                status = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to post message", e, "error") from e

        logger.info("Mastodon status posted", status_id=status.get("id"))
        return status

    async def _upload_media(
        self,
        client: httpx.AsyncClient,
        image: ImageEmbed,
        signal: CancellationToken | None,
    ) -> str:
        """Upload one image and return its media id."""
        mime_type = get_image_mime_type(image.data)
        data = {"description": image.alt} if image.alt else {}

        response = await cancellable(
            client.post(
                f"https://{self._host}/api/v2/media",
                headers=self._headers,
                data=data,
                files={"file": (image_filename(image.data), image.data, mime_type)},
            ),
            signal,
        )
        response.raise_for_status()
        return response.json()["id"]

    def get_url_from_response(self, response: dict) -> str:
        """
        Build the post URL on our own host.

        The status URI looks like
        https://instance.example/users/username/statuses/123456789
        """
        uri = (response or {}).get("uri")
        if not uri:
            raise ValueError("Post URI not found in response")

        parts = uri.split("/")
        if len(parts) < 3:
            raise ValueError("Invalid URI format in response")

        username, status_id = parts[-3], parts[-1]
        return f"https://{self._host}/@{username}/{status_id}"
