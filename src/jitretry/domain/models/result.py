"""RetryResult model - the record of one retry execution"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional

from jitretry.domain.errors import (
    MaxAttemptsReached,
    NoOperationError,
    RetryCancelled,
    RetryError,
    RetryInterrupted,
    RetryTimedOut,
)


class Outcome(str, Enum):
    """How an execution ended"""

    SUCCESS = "success"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    MAX_ATTEMPTS_REACHED = "max_attempts_reached"
    NO_OPERATION = "no_operation"
    INTERRUPTED = "interrupted"


_OUTCOME_ERRORS = {
    Outcome.CANCELLED: RetryCancelled,
    Outcome.TIMED_OUT: RetryTimedOut,
    Outcome.MAX_ATTEMPTS_REACHED: MaxAttemptsReached,
    Outcome.NO_OPERATION: NoOperationError,
    Outcome.INTERRUPTED: RetryInterrupted,
}


@dataclass
class RetryResult:
    """Result of one call to ``Retrier.do``"""

    outcome: Outcome
    errors: List[BaseException] = field(default_factory=list)  # Failed attempts, in order
    value: Any = None  # Return value of the successful attempt

    @property
    def is_successful(self) -> bool:
        """Check if the operation eventually succeeded"""
        return self.outcome is Outcome.SUCCESS

    @property
    def attempts(self) -> int:
        """Number of times the operation was invoked"""
        if self.is_successful:
            return len(self.errors) + 1
        return len(self.errors)

    @property
    def last_error(self) -> Optional[BaseException]:
        """Error raised by the most recent failed attempt"""
        return self.errors[-1] if self.errors else None

    @property
    def error(self) -> Optional[RetryError]:
        """Exception describing the outcome, or None on success"""
        if self.is_successful:
            return None
        return _OUTCOME_ERRORS[self.outcome](self.errors)

    def raise_for_outcome(self) -> None:
        """Raise the outcome exception, chained from the last failure"""
        error = self.error
        if error is not None:
            raise error from self.last_error
