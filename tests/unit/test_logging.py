"""Tests for logging helpers."""

from crosspost.infrastructure.logging import (
    Timer,
    correlation_id,
    get_correlation_id,
    sanitize_for_logging,
    set_correlation_id,
)


class TestLoggingHelpers:
    def test_sanitize_short_value_unchanged(self) -> None:
        assert sanitize_for_logging("abc") == "abc"

    def test_sanitize_truncates_secrets(self) -> None:
        assert sanitize_for_logging("supersecrettoken") == "supersec..."

    def test_sanitize_empty(self) -> None:
        assert sanitize_for_logging("") == ""

    def test_correlation_id_round_trip(self) -> None:
        token = set_correlation_id("abc123")
        try:
            assert get_correlation_id() == "abc123"
        finally:
            correlation_id.reset(token)

        assert get_correlation_id() == ""

    def test_timer_measures_duration(self) -> None:
        with Timer() as timer:
            sum(range(1000))

        assert timer.duration_ms >= 0
