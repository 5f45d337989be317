"""Retrier - repeats a fallible operation with jittered exponential backoff.

A Retrier is built once from validated options and may then be shared by any
number of threads. Each call to ``do`` draws its own random generator from a
lock-protected seed counter so concurrent executions do not sleep in step.
"""

from __future__ import annotations

import logging
import math
import random
import threading
import time
from typing import Any, Callable, List, Optional, Tuple

from jitretry.domain.config.retry import RetryOptions
from jitretry.domain.errors import ConfigError
from jitretry.domain.models.result import Outcome, RetryResult

logger = logging.getLogger(__name__)

RetryPolicy = Callable[[BaseException], bool]
Operation = Callable[[], Any]


def validate_options(options: RetryOptions) -> None:
    """Check option ranges, raising on the first violation.

    Comparisons are written so that NaN fails every check.

    Raises:
        ConfigError: If any option is out of range
    """
    if not options.attempts >= 1:
        raise ConfigError(
            "attempts", options.attempts, f"expected attempts to be at least 1, got {options.attempts}"
        )
    if not options.base > 0:
        raise ConfigError("base", options.base, f"expected base to be greater than 0, got {options.base}")
    if not options.max_interval >= options.base:
        raise ConfigError(
            "max_interval",
            options.max_interval,
            f"expected max_interval to be at least base, got max_interval {options.max_interval} "
            f"and base {options.base}",
        )
    if not options.max_wait >= options.base:
        raise ConfigError(
            "max_wait",
            options.max_wait,
            f"expected max_wait to be at least base, got max_wait {options.max_wait} and base {options.base}",
        )
    if not options.exponent >= 1:
        raise ConfigError(
            "exponent", options.exponent, f"expected exponent to be at least 1, got {options.exponent:.2f}"
        )
    if not 0 <= options.jitter <= 1:
        raise ConfigError(
            "jitter", options.jitter, f"expected jitter to be between 0 and 1, got {options.jitter:.2f}"
        )


def _capped_delay(options: RetryOptions, attempt: int) -> float:
    try:
        raw = options.base * options.exponent**attempt
    except OverflowError:
        raw = math.inf
    return min(options.max_interval, raw)


def compute_delay(options: RetryOptions, attempt: int, rng: random.Random) -> float:
    """Compute the delay before retry number ``attempt`` (0-based).

    Args:
        options: Validated retry options
        attempt: Number of retries already performed
        rng: Generator supplying the jitter

    Returns:
        Delay in seconds, between ``(1 - jitter)`` and 1 times the capped delay
    """
    return _capped_delay(options, attempt) * (1 - rng.random() * options.jitter)


def _walk_schedule(options: RetryOptions) -> Tuple[List[float], Outcome]:
    delays: List[float] = []
    waited = 0.0
    for attempt in range(options.attempts):
        delay = _capped_delay(options, attempt)
        if waited + delay >= options.max_wait:
            return delays, Outcome.TIMED_OUT
        if attempt + 1 >= options.attempts:
            break
        delays.append(delay)
        waited += delay
    return delays, Outcome.MAX_ATTEMPTS_REACHED


def backoff_schedule(options: RetryOptions) -> List[float]:
    """Jitter-free delays slept through by a run in which every attempt fails.

    Stops early at the first delay that would exhaust ``max_wait``.
    """
    return _walk_schedule(options)[0]


def schedule_outcome(options: RetryOptions) -> Outcome:
    """Outcome of a jitter-free run in which every attempt fails.

    ``TIMED_OUT`` when some delay, including the one computed after the
    final attempt, would exhaust ``max_wait``; otherwise
    ``MAX_ATTEMPTS_REACHED``.
    """
    return _walk_schedule(options)[1]


class Retrier:
    """Runs operations until they succeed or a retry budget runs out.

    The retry policy is optional; without one every failure is retried.
    Options are validated here and never re-checked.
    """

    def __init__(self, options: RetryOptions, should_retry: Optional[RetryPolicy] = None):
        """Initialize retrier

        Args:
            options: Retry options
            should_retry: Called with each failure; returning False stops retrying

        Raises:
            ConfigError: If options are out of range
        """
        validate_options(options)
        self.options = options
        self.should_retry = should_retry
        self._seed = time.time_ns()
        self._seed_lock = threading.Lock()

    def _next_seed(self) -> int:
        with self._seed_lock:
            self._seed += 1
            return self._seed

    def _pause(self, delay: float, cancel: Optional[threading.Event]) -> bool:
        """Sleep for ``delay`` seconds, returning True if cancelled"""
        if cancel is None:
            time.sleep(delay)
            return False
        return cancel.wait(delay)

    def schedule(self) -> List[float]:
        """Jitter-free delays this retrier would use if every attempt fails"""
        return backoff_schedule(self.options)

    def do(self, operation: Optional[Operation], cancel: Optional[threading.Event] = None) -> RetryResult:
        """Call ``operation`` until it returns without raising.

        An attempt fails when the operation raises an ``Exception``. Each
        failure is kept in the result in the order it happened. The loop
        stops when the operation succeeds, the retry policy rejects a
        failure, the attempt ceiling is reached, the next delay would
        exhaust ``max_wait``, or ``cancel`` is set while waiting.

        Args:
            operation: Zero-argument callable to run
            cancel: Optional event that interrupts the wait between attempts

        Returns:
            RetryResult with the outcome, failures and returned value
        """
        if operation is None:
            logger.debug("No operation supplied, nothing to retry")
            return RetryResult(Outcome.NO_OPERATION)

        options = self.options
        rng = random.Random(self._next_seed())
        errors: List[BaseException] = []
        waited = 0.0

        for attempt in range(options.attempts):
            number = attempt + 1
            try:
                value = operation()
            except Exception as e:
                errors.append(e)
            else:
                if errors:
                    logger.info(f"Operation succeeded on attempt {number}/{options.attempts}")
                return RetryResult(Outcome.SUCCESS, errors, value)

            error = errors[-1]
            if self.should_retry is not None and not self.should_retry(error):
                logger.info(f"Retry policy rejected error on attempt {number}: {error}")
                return RetryResult(Outcome.CANCELLED, errors)

            delay = compute_delay(options, attempt, rng)
            if waited + delay >= options.max_wait:
                logger.warning(
                    f"Attempt {number}/{options.attempts} failed: {error}. "
                    f"Next delay {delay:.3f}s would exceed max wait of {options.max_wait}s"
                )
                return RetryResult(Outcome.TIMED_OUT, errors)

            if number >= options.attempts:
                break

            logger.warning(f"Attempt {number}/{options.attempts} failed: {error}. Retrying in {delay:.3f}s")
            if self._pause(delay, cancel):
                logger.info(f"Retry interrupted after attempt {number}")
                return RetryResult(Outcome.INTERRUPTED, errors)
            waited += delay

        logger.info(f"Operation failed after {len(errors)} attempts: {errors[-1]}")
        return RetryResult(Outcome.MAX_ATTEMPTS_REACHED, errors)
