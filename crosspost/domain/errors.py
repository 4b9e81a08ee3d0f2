"""
Exception hierarchy for crosspost.

Caller misuse (bad configuration, bad entries, unknown strategy ids) is
raised at the call boundary. Platform failures raised inside a strategy
are captured by the client and reported as a FailureResult instead.
"""


class CrosspostError(Exception):
    """Base class for all crosspost errors."""


class InvalidConfigurationError(CrosspostError, TypeError):
    """Raised when a client or strategy is constructed with bad options."""


class InvalidArgumentError(CrosspostError, TypeError):
    """Raised when an operation receives arguments it cannot use."""


class StrategyNotFoundError(CrosspostError, LookupError):
    """Raised when one or more strategy ids are not configured."""

    def __init__(self, strategy_ids: list[str]) -> None:
        self.strategy_ids = tuple(strategy_ids)
        self.strategy_id = self.strategy_ids[0]
        if len(self.strategy_ids) == 1:
            message = f'Strategy with ID "{self.strategy_id}" not found.'
        else:
            quoted = ", ".join(f'"{sid}"' for sid in self.strategy_ids)
            message = f"Strategies with IDs {quoted} not found."
        super().__init__(message)


class StrategyError(CrosspostError):
    """Raised by a strategy when its platform rejects or fails a request."""

    def __init__(
        self,
        message: str,
        platform: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.platform = platform
        self.status_code = status_code


class PostCancelledError(CrosspostError):
    """Raised when a cancellation token fires before a request completes."""
