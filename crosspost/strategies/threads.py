import httpx
import structlog

from ..cancellation import cancellable
from ..domain.errors import InvalidArgumentError, InvalidConfigurationError
from ..domain.ports import PostOptions, ProvidesPostUrl, Strategy
from .base import DEFAULT_TIMEOUT, USER_AGENT, api_error, validate_post_options

logger = structlog.get_logger()


class ThreadsStrategy(Strategy, ProvidesPostUrl):
    """Threads API strategy: create a text container, then publish it."""

    id = "threads"
    name = "Threads"
    MAX_MESSAGE_LENGTH = 500

    BASE_URL = "https://graph.threads.net/v1.0"

    def __init__(
        self,
        access_token: str,
        user_id: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not access_token:
            raise InvalidConfigurationError("Missing access token.")
        if not user_id:
            raise InvalidConfigurationError("Missing Threads user ID.")

        self._access_token = access_token
        self._user_id = user_id
        self._timeout = timeout

    async def post(self, message: str, options: PostOptions | None = None) -> dict:
        """
        Publish a text post.

        Returns the published media id and its permalink.
        """
        if not message:
            raise InvalidArgumentError("Missing message to post.")
        validate_post_options(options)

        signal = options.signal if options else None
        if options and options.images:
            logger.warning("Threads images not supported, posting text only")

        headers = {
            "Authorization": f"Bearer {self._access_token}",
            "User-Agent": USER_AGENT,
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await cancellable(
                    client.post(
                        f"{self.BASE_URL}/{self._user_id}/threads",
                        headers=headers,
                        params={"media_type": "TEXT", "text": message},
                    ),
                    signal,
                )
                response.raise_for_status()
                creation_id = response.json()["id"]

                response = await cancellable(
                    client.post(
                        f"{self.BASE_URL}/{self._user_id}/threads_publish",
                        headers=headers,
                        params={"creation_id": creation_id},
                    ),
                    signal,
                )
                response.raise_for_status()
                media_id = response.json()["id"]

                response = await cancellable(
                    client.get(
                        f"{self.BASE_URL}/{media_id}",
                        headers=headers,
                        params={"fields": "id,permalink"},
                    ),
                    signal,
                )
                response.raise_for_status()
                published = response.json()

        except httpx.HTTPStatusError as e:
            raise api_error(self.name, "Failed to create post", e, "error", "message") from e

        logger.info("Threads post published", media_id=media_id)
        return {"id": media_id, "permalink": published.get("permalink")}

    def get_url_from_response(self, response: dict) -> str:
        permalink = (response or {}).get("permalink")
        if not permalink:
            raise ValueError("Permalink not found in response")
        return permalink
