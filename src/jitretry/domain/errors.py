"""Exceptions raised by jitretry.

Two families live here: ``ConfigError`` for invalid options, raised when a
Retrier is built, and ``RetryError`` subclasses describing why an execution
stopped without success.
"""

from typing import Any, List, Optional


class ConfigError(ValueError):
    """Invalid retry options.

    Attributes:
        field: Name of the offending option
        value: Value that was received
    """

    def __init__(self, field: str, value: Any, message: str):
        super().__init__(message)
        self.field = field
        self.value = value


class RetryError(Exception):
    """Base class for failing execution outcomes."""

    default_message = "retry failed"

    def __init__(self, errors: Optional[List[BaseException]] = None, message: Optional[str] = None):
        super().__init__(message or self.default_message)
        self.errors = list(errors or [])

    @property
    def last_error(self) -> Optional[BaseException]:
        return self.errors[-1] if self.errors else None


class NoOperationError(RetryError):
    """No operation was passed to ``Retrier.do``."""

    default_message = "no operation supplied"


class RetryCancelled(RetryError):
    """The retry policy rejected a failure as permanent."""

    default_message = "further retries cancelled"


class RetryTimedOut(RetryError):
    """The next delay would exhaust the cumulative wait budget."""

    default_message = "maximum wait time reached"


class MaxAttemptsReached(RetryError):
    """Every allowed attempt failed."""

    default_message = "reached maximum attempts"


class RetryInterrupted(RetryError):
    """The cancellation event was set while waiting between attempts."""

    default_message = "interrupted while waiting to retry"
