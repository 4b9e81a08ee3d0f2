from dataclasses import replace
from datetime import UTC, datetime

import httpx
import regex
import structlog

from ..cancellation import CancellationToken, cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import ImageEmbed, PostOptions, ProvidesPostUrl, Strategy
from ..facets import Facet, MentionFeature, detect_facets
from .base import (
    DEFAULT_TIMEOUT,
    USER_AGENT,
    api_error,
    get_image_mime_type,
    validate_post_options,
)

logger = structlog.get_logger()

GRAPHEME_REGEX = regex.compile(r"\X")


class BlueskyStrategy(Strategy, ProvidesPostUrl):
    """
    AT Protocol strategy for Bluesky posts.

    Each post opens its own session, so concurrent posts never share
    tokens.
    """

    id = "bluesky"
    name = "Bluesky"
    MAX_MESSAGE_LENGTH = 300

    def __init__(
        self,
        identifier: str,
        password: str,
        host: str = "bsky.social",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not identifier:
            raise InvalidConfigurationError("Missing identifier.")
        if not password:
            raise InvalidConfigurationError("Missing password.")
        if not host:
            raise InvalidConfigurationError("Missing host.")

        self._identifier = identifier
        self._password = password
        self._host = host
        self._timeout = timeout

    def _url(self, method: str) -> str:
        return f"https://{self._host}/xrpc/{method}"

    def calculate_message_length(self, message: str) -> int:
        """Bluesky counts graphemes of the text after links are shortened."""
        return len(GRAPHEME_REGEX.findall(detect_facets(message).text))

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """Create a post record with facets and optional images."""
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        images = options.images if options else ()
        detection = detect_facets(message)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                session = await self._create_session(client, signal)
                headers = {
                    "Authorization": f"Bearer {session['accessJwt']}",
                    "User-Agent": USER_AGENT,
                }

                facets = await self._resolve_mentions(client, detection.facets, signal)

                record: dict = {
                    "$type": "app.bsky.feed.post",
                    "text": detection.text,
                    "createdAt": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
                }
                if facets:
                    record["facets"] = [facet.to_dict() for facet in facets]
                if images:
                    record["embed"] = {
                        "$type": "app.bsky.embed.images",
                        "images": [
                            {
                                "alt": image.alt or "",
                                "image": await self._upload_blob(client, headers, image, signal),
                            }
                            for image in images
                        ],
                    }

                response = await cancellable(
                    client.post(
                        self._url("com.atproto.repo.createRecord"),
                        headers=headers,
                        json={
                            "repo": session["did"],
                            "collection": "app.bsky.feed.post",
                            "record": record,
                        },
                    ),
                    signal,
                )
                response.raise_for_status()
                created = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to create post", e, "message") from e

        logger.info("Bluesky post created", uri=created.get("uri"))
        return created

    async def _create_session(
        self,
        client: httpx.AsyncClient,
        signal: CancellationToken | None,
    ) -> dict:
        response = await cancellable(
            client.post(
                self._url("com.atproto.server.createSession"),
                headers={"User-Agent": USER_AGENT},
                json={"identifier": self._identifier, "password": self._password},
            ),
            signal,
        )
        response.raise_for_status()
        return response.json()

    async def _resolve_mentions(
        self,
        client: httpx.AsyncClient,
        facets: list[Facet],
        signal: CancellationToken | None,
    ) -> list[Facet]:
        """Swap mention handles for DIDs; drop mentions that do not resolve."""
        resolved: list[Facet] = []

        for facet in facets:
            feature = facet.features[0]
            if not isinstance(feature, MentionFeature):
                resolved.append(facet)
                continue

            response = await cancellable(
                client.get(
                    self._url("com.atproto.identity.resolveHandle"),
                    params={"handle": feature.did},
                    headers={"User-Agent": USER_AGENT},
                ),
                signal,
            )
            if response.is_error:
                logger.info("Skipping unresolved mention", handle=feature.did)
                continue

            did = response.json().get("did")
            if not did:
                continue
            resolved.append(replace(facet, features=(MentionFeature(did=did),)))

        return resolved

    async def _upload_blob(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        image: ImageEmbed,
        signal: CancellationToken | None,
    ) -> dict:
        response = await cancellable(
            client.post(
                self._url("com.atproto.repo.uploadBlob"),
                headers={**headers, "Content-Type": get_image_mime_type(image.data)},
                content=image.data,
            ),
            signal,
        )
        response.raise_for_status()
        return response.json()["blob"]

    def get_url_from_response(self, response: dict) -> str:
        """Turn at://did/app.bsky.feed.post/rkey into a bsky.app URL."""
        uri = (response or {}).get("uri", "")
        if not uri.startswith("at://"):
            raise ValueError("Post URI not found in response")

        did, _, rkey = uri.removeprefix("at://").split("/", 2)
        return f"https://bsky.app/profile/{did}/post/{rkey}"
