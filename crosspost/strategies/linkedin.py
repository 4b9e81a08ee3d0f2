import httpx
import structlog

from ..cancellation import CancellationToken, cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import PostOptions, ProvidesPostUrl, Strategy
from .base import DEFAULT_TIMEOUT, USER_AGENT, api_error, validate_post_options

logger = structlog.get_logger()


class LinkedInStrategy(Strategy, ProvidesPostUrl):
    """
    LinkedIn API strategy for UGC posts.

    Posts as the organization when `organization_id` is set, otherwise as
    the member who owns the access token.
    """

    id = "linkedin"
    name = "LinkedIn"
    MAX_MESSAGE_LENGTH = 3000

    BASE_URL = "https://api.linkedin.com/v2"

    def __init__(
        self,
        access_token: str,
        organization_id: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing access token.")

        self._access_token = access_token
        self._organization_id = organization_id
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """Post a public text share."""
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        if options and options.images:
            logger.warning("LinkedIn images not supported, posting text only")

        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
            "X-Restli-Protocol-Version": "2.0.0",
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                author = await self._get_author(client, headers, signal)

                share_content = {
                    "author": author,
                    "lifecycleState": "PUBLISHED",
                    "specificContent": {
                        "com.linkedin.ugc.ShareContent": {
                            "shareCommentary": {"text": message},
                            "shareMediaCategory": "NONE",
                        }
                    },
                    "visibility": {"com.linkedin.ugc.MemberNetworkVisibility": "PUBLIC"},
                }

                response = await cancellable(
                    client.post(
                        f"{self.BASE_URL}/ugcPosts",
                        headers=headers,
                        json=share_content,
                    ),
                    signal,
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to create post", e, "message") from e

        logger.info("LinkedIn post created", post_id=data.get("id"))
        return data

    async def _get_author(
        self,
        client: httpx.AsyncClient,
        headers: dict[str, str],
        signal: CancellationToken | None,
    ) -> str:
        if self._organization_id:
            return f"urn:li:organization:{self._organization_id}"

        response = await cancellable(
            client.get(f"{self.BASE_URL}/userinfo", headers=headers),
            signal,
        )
        response.raise_for_status()
        return f"urn:li:person:{response.json()['sub']}"

    def get_url_from_response(self, response: dict) -> str:
        post_id = (response or {}).get("id")
        if not post_id:
            raise ValueError("Post ID not found in response")
        return f"https://www.linkedin.com/feed/update/{post_id}"
