"""Shared fixtures for crosspost tests."""

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from crosspost.cancellation import cancellable
from crosspost.domain.ports import PostOptions, ProvidesPostUrl, Strategy

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


class EchoStrategy(Strategy):
    """Returns a fixed response and records every call."""

    def __init__(self, strategy_id: str, name: str | None = None, response="ok") -> None:
        self.id = strategy_id
        self.name = name or strategy_id
        self.response = response
        self.calls: list[tuple[str, PostOptions | None]] = []

    async def post(self, message, options=None):
        self.calls.append((message, options))
        return self.response


class LinkedEchoStrategy(EchoStrategy, ProvidesPostUrl):
    """EchoStrategy that also knows how to build a post URL."""

    def get_url_from_response(self, response):
        return f"https://example.com/{self.id}/{response}"


class FailingStrategy(Strategy):
    def __init__(self, strategy_id: str, error: Exception | None = None) -> None:
        self.id = strategy_id
        self.name = strategy_id
        self.error = error or RuntimeError("boom")

    async def post(self, message, options=None):
        raise self.error


class SlowStrategy(Strategy):
    """Waits until its cancellation token fires (or `delay` passes)."""

    def __init__(self, strategy_id: str, delay: float = 10) -> None:
        self.id = strategy_id
        self.name = strategy_id.title()
        self.delay = delay

    async def post(self, message, options=None):
        signal = options.signal if options else None
        await cancellable(asyncio.sleep(self.delay), signal)
        return "done"


def make_response(json_data=None, status_code: int = 200) -> MagicMock:
    """An httpx.Response stand-in for strategies under test."""
    response = MagicMock()
    response.status_code = status_code
    response.is_error = status_code >= 400
    response.json.return_value = json_data if json_data is not None else {}
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


def make_error_response(status_code: int, json_data=None) -> MagicMock:
    """A response whose raise_for_status raises like httpx does."""
    response = make_response(json_data, status_code=status_code)
    response.raise_for_status.side_effect = httpx.HTTPStatusError(
        "Error",
        request=MagicMock(),
        response=response,
    )
    return response
