import re
import time

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

API_BASE = "https://api.webflow.com/v2"


def create_slug(message: str) -> str:
    """URL slug from the first 100 characters of a message."""
    slug = message.lower().strip()[:100]
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class WebflowStrategy(Strategy, ProvidesPostUrl):
    """Webflow CMS strategy that adds the message as a collection item."""

    id = "webflow"
    name = "Webflow"
    MAX_MESSAGE_LENGTH = 10000

    def __init__(
        self,
        access_token: str,
        site_id: str,
        collection_id: str,
        api_base_url: str = API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing access token.")
        if not site_id:
            raise InvalidConfigurationError("Missing site ID.")
        if not collection_id:
            raise InvalidConfigurationError("Missing collection ID.")

        self._access_token = access_token
        self._site_id = site_id
        self._collection_id = collection_id
        self._api_base_url = api_base_url or API_BASE
        self._timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._access_token}",
            "User-Agent": USER_AGENT,
        }

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """
        Create a collection item.

        The first uploaded image becomes the item's main image; all of them
        are listed in its images field.
        """
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()

        item: dict = {
            "name": message[:256],
            "slug": create_slug(message) or f"post-{int(time.time() * 1000)}",
            "fieldData": {"content": message},
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                if images:
                    assets = await run_all(
                        self._upload_image(client, image, signal) for image in images
                    )
                    item["fieldData"]["main-image"] = assets[0]["id"]
                    item["fieldData"]["images"] = [asset["id"] for asset in assets]

                response = await cancellable(
                    client.post(
                        f"{self._api_base_url}/collections/{self._collection_id}/items",
                        headers=self._headers,
                        json=item,
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to create collection item", e, "message") from e

        logger.info("Webflow item created", item_id=data.get("id"), slug=data.get("slug"))
        return data

    async def _upload_image(
        self,
        client: httpx.AsyncClient,
        image: ImageEmbed,
        signal: CancellationToken | None,
    ) -> dict:
        data = {"displayName": image.alt} if image.alt else {}
        response = await cancellable(
            client.post(
                f"{self._api_base_url}/sites/{self._site_id}/assets",
                headers=self._headers,
                data=data,
                files={
                    "file": (
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
        slug = (response or {}).get("slug")
        if not slug:
            raise ValueError("Slug not found in response")
        return f"https://{self._site_id}.webflow.io/{slug}"
