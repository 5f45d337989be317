"""Domain models"""

from jitretry.domain.models.result import Outcome, RetryResult

__all__ = ["Outcome", "RetryResult"]
