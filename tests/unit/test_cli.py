"""Tests for the crosspost command."""

from unittest.mock import patch

import pytest
from click.testing import CliRunner

from conftest import EchoStrategy, FailingStrategy, LinkedEchoStrategy, PNG_BYTES
from crosspost.cli import format_result, load_images, main, read_message, selected_platforms
from crosspost.domain.errors import InvalidConfigurationError
from crosspost.domain.ports import FailureResult, SuccessResult


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestHelpers:
    def test_selected_platforms_in_flag_order(self) -> None:
        flags = {"threads": True, "bluesky": True, "discord_webhook": True, "mastodon": False}

        assert selected_platforms(flags) == ["bluesky", "discord-webhook", "threads"]

    def test_selected_platforms_include_twitter_and_x(self) -> None:
        flags = {"x": True, "slack": True, "twitter": True, "instagram": False}

        assert selected_platforms(flags) == ["slack", "twitter", "x"]

    def test_read_message_unescapes_newlines(self) -> None:
        assert read_message("line one\\nline two", None) == "line one\nline two"

    def test_read_message_from_file(self, tmp_path) -> None:
        path = tmp_path / "post.txt"
        path.write_text("From a file\\n kept as-is", encoding="utf-8")

        assert read_message(None, path) == "From a file\\n kept as-is"

    def test_load_images_pairs_alt_text(self, tmp_path) -> None:
        first = tmp_path / "a.png"
        second = tmp_path / "b.png"
        first.write_bytes(PNG_BYTES)
        second.write_bytes(PNG_BYTES)

        images = load_images((first, second), ("First",))

        assert [image.alt for image in images] == ["First", None]
        assert images[0].data == PNG_BYTES

    def test_format_results(self) -> None:
        assert format_result(SuccessResult(name="Bluesky", id="bluesky", response={}, url="https://bsky.app/x")) == (
            "OK   Bluesky https://bsky.app/x"
        )
        assert format_result(FailureResult(name="Mastodon", id="mastodon", reason=RuntimeError("boom"))) == (
            "FAIL Mastodon: boom"
        )


class TestMain:
    def test_requires_a_platform(self, runner) -> None:
        result = runner.invoke(main, ["Hello"])

        assert result.exit_code == 2
        assert "Select at least one platform" in result.output

    def test_requires_a_message(self, runner) -> None:
        result = runner.invoke(main, ["--bluesky"])

        assert result.exit_code == 2

    def test_posts_to_selected_platforms(self, runner) -> None:
        strategies = [LinkedEchoStrategy("bluesky", name="Bluesky", response="1"), EchoStrategy("mastodon", name="Mastodon")]

        with patch("crosspost.cli.StrategyFactory") as mock_factory:
            mock_factory.return_value.create_many.return_value = strategies

            result = runner.invoke(main, ["-b", "-m", "Hello world"])

        assert result.exit_code == 0
        mock_factory.return_value.create_many.assert_called_once_with(["bluesky", "mastodon"])
        assert "OK   Bluesky https://example.com/bluesky/1" in result.output
        assert "OK   Mastodon" in result.output
        assert strategies[0].calls[0][0] == "Hello world"

    def test_exits_nonzero_on_failure(self, runner) -> None:
        with patch("crosspost.cli.StrategyFactory") as mock_factory:
            mock_factory.return_value.create_many.return_value = [
                EchoStrategy("bluesky", name="Bluesky"),
                FailingStrategy("telegram"),
            ]

            result = runner.invoke(main, ["-b", "--telegram", "Hello"])

        assert result.exit_code == 1
        assert "FAIL telegram: boom" in result.output

    def test_configuration_error_reported(self, runner) -> None:
        with patch("crosspost.cli.StrategyFactory") as mock_factory:
            mock_factory.return_value.create_many.side_effect = InvalidConfigurationError("Missing password.")

            result = runner.invoke(main, ["-b", "Hello"])

        assert result.exit_code == 1
        assert "Missing password." in result.output

    def test_short_twitter_flag(self, runner) -> None:
        with patch("crosspost.cli.StrategyFactory") as mock_factory:
            mock_factory.return_value.create_many.return_value = [EchoStrategy("twitter", name="Twitter")]

            result = runner.invoke(main, ["-t", "--webflow", "Hello world"])

        mock_factory.return_value.create_many.assert_called_once_with(["webflow", "twitter"])
        assert "OK   Twitter" in result.output
