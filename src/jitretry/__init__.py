"""Retry fallible operations with jittered exponential backoff"""

from jitretry.application.retrier import Retrier, backoff_schedule, compute_delay, schedule_outcome
from jitretry.domain.config import RetryOptions
from jitretry.domain.errors import (
    ConfigError,
    MaxAttemptsReached,
    NoOperationError,
    RetryCancelled,
    RetryError,
    RetryInterrupted,
    RetryTimedOut,
)
from jitretry.domain.models import Outcome, RetryResult

__all__ = [
    "Retrier",
    "RetryOptions",
    "RetryResult",
    "Outcome",
    "ConfigError",
    "RetryError",
    "NoOperationError",
    "RetryCancelled",
    "RetryTimedOut",
    "MaxAttemptsReached",
    "RetryInterrupted",
    "backoff_schedule",
    "compute_delay",
    "schedule_outcome",
]
