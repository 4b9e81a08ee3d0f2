"""
Logging configuration for crosspost.

Centralized structlog setup with:
- Structured JSON output (or console output for interactive use)
- Correlation ID tracking per post call
- Performance timing helpers
- Token-safe logging
"""

import logging
import sys
import time
from contextvars import ContextVar, Token

import structlog

# Context variable for post correlation
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def configure_logging(
    service_name: str,
    json_logs: bool = True,
    level: str = "INFO",
) -> None:
    """
    Configure structured logging.

    Args:
        service_name: Name added to every log entry
        json_logs: Render JSON lines instead of colored console output
        level: Minimum stdlib log level name
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_name(service_name),
            _add_correlation_id,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def _add_service_name(service_name: str):
    """Processor to add service name to all logs."""

    def processor(logger, method_name, event_dict):
        event_dict["service"] = service_name
        return event_dict

    return processor


def _add_correlation_id(logger, method_name, event_dict):
    """Processor to add correlation ID if present."""
    cid = correlation_id.get()
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def set_correlation_id(cid: str) -> Token[str]:
    """Set correlation ID for the current context (one per post call)."""
    return correlation_id.set(cid)


def get_correlation_id() -> str:
    """Get current correlation ID."""
    return correlation_id.get()


class Timer:
    """
    Context manager for timing operations.

    Usage:
        with Timer() as t:
            await client.post("Hello")
        logger.info("Post completed", duration_ms=t.duration_ms)
    """

    def __init__(self):
        self._start: float = 0
        self._end: float = 0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self._end = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        """Duration in milliseconds, rounded to 2 decimal places."""
        return round((self._end - self._start) * 1000, 2)


def sanitize_for_logging(value: str, visible_chars: int = 8) -> str:
    """Truncate secrets (tokens, passwords) before they reach a log line."""
    if not value:
        return ""
    if len(value) <= visible_chars:
        return value
    return value[:visible_chars] + "..."
