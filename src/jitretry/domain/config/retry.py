"""Retry options model."""

from pydantic import BaseModel, ConfigDict


class RetryOptions(BaseModel):
    """Options for a Retrier.

    Durations are in seconds. Range checks are done by ``Retrier`` so that
    the first violated constraint is reported on its own.

    Attributes:
        attempts: Maximum number of operation invocations
        base: Delay before the first retry
        max_interval: Ceiling for any single delay
        max_wait: Ceiling for the sum of all delays
        exponent: Growth rate of the delay between retries
        jitter: Fraction of each delay that is randomized (0.0-1.0)
    """

    attempts: int = 3
    base: float = 0.1
    max_interval: float = 10.0
    max_wait: float = 30.0
    exponent: float = 2.0
    jitter: float = 0.5

    model_config = ConfigDict(frozen=True, extra="forbid")
