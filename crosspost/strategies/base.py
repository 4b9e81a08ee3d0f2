"""Helpers shared by the HTTP strategies."""

import asyncio
from collections.abc import Coroutine, Iterable
from typing import Any, TypeVar

import httpx
import structlog

from ..domain.errors import InvalidArgumentError, StrategyError
from ..domain.ports import PostOptions

logger = structlog.get_logger()

T = TypeVar("T")

USER_AGENT = "crosspost/0.1.0 (+https://github.com/crosspost)"
DEFAULT_TIMEOUT = 30.0

_IMAGE_SIGNATURES = (
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF", "image/gif"),
)


def get_image_mime_type(data: bytes) -> str:
    """
    Determine an image's MIME type from its magic number.

    Raises:
        ValueError: If the data is not a PNG, JPEG or GIF image
    """
    if len(data) >= 4:
        for signature, mime_type in _IMAGE_SIGNATURES:
            if data.startswith(signature):
                return mime_type
    raise ValueError("Unable to determine image type.")


def image_filename(data: bytes, stem: str = "image") -> str:
    return f"{stem}.{get_image_mime_type(data).split('/')[1]}"


def validate_post_options(options: PostOptions | None) -> None:
    """Check that every image carries non-empty binary data."""
    if options is None:
        return

    for image in options.images:
        if not isinstance(image.data, (bytes, bytearray)):
            raise InvalidArgumentError("Image data must be bytes.")
        if not image.data:
            raise InvalidArgumentError("Image must have data.")


def error_detail(response: httpx.Response, *path: str) -> str | None:
    """Pull a human-readable message out of an error body, if there is one."""
    try:
        value: Any = response.json()
    except ValueError:
        return None

    for key in path:
        if not isinstance(value, dict):
            return None
        value = value.get(key)

    return value if isinstance(value, str) else None


def api_error(
    platform: str,
    action: str,
    error: httpx.HTTPStatusError,
    *detail_path: str,
) -> StrategyError:
    """Build (and log) the StrategyError for a failed platform request."""
    status_code = error.response.status_code
    detail = error_detail(error.response, *detail_path) if detail_path else None

    message = f"{platform} API error: {status_code} {action}"
    if detail:
        message = f"{message}: {detail}"

    logger.error(
        "Strategy request failed",
        platform=platform,
        status_code=status_code,
        error=message,
    )
    return StrategyError(message, platform=platform, status_code=status_code)


async def run_all(coros: Iterable[Coroutine[Any, Any, T]]) -> list[T]:
    """
    Run coroutines concurrently and return their results in order.

    The first failure cancels the rest and is re-raised unwrapped, so
    callers can keep handling httpx errors with a plain except.
    """
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(coro) for coro in coros]
    except BaseExceptionGroup as eg:
        raise eg.exceptions[0]

    return [task.result() for task in tasks]
