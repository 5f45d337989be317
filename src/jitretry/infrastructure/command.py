"""External commands as retryable operations."""

from __future__ import annotations

import logging
import subprocess
from typing import Callable, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class CommandFailedError(Exception):
    """Command exited with a non-zero status."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = ""):
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        message = f"command exited with status {returncode}"
        if stderr:
            message = f"{message}: {stderr}"
        super().__init__(message)


class CommandTimeoutError(Exception):
    """Command did not finish within its per-attempt timeout."""

    def __init__(self, args: Sequence[str], timeout: float):
        self.command = list(args)
        self.timeout = timeout
        super().__init__(f"command timed out after {timeout}s")


def _tail(text: Optional[str], lines: int = 3) -> str:
    if not text:
        return ""
    return " | ".join(text.strip().splitlines()[-lines:])


class CommandOperation:
    """Zero-argument callable that runs a command once.

    Raises on failure so it can be passed straight to ``Retrier.do``.
    Stdout is passed through; the tail of stderr is kept in the error.
    """

    def __init__(self, args: Sequence[str], timeout: Optional[float] = None):
        if not args:
            raise ValueError("command must not be empty")
        self.args: List[str] = list(args)
        self.timeout = timeout

    def __call__(self) -> subprocess.CompletedProcess:
        logger.debug(f"Running: {' '.join(self.args)}")
        try:
            completed = subprocess.run(
                self.args,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CommandTimeoutError(self.args, self.timeout) from e
        if completed.returncode != 0:
            raise CommandFailedError(self.args, completed.returncode, _tail(completed.stderr))
        return completed


def exit_code_policy(stop_on: Iterable[int]) -> Callable[[BaseException], bool]:
    """Build a retry policy for CommandOperation failures.

    Exit codes in ``stop_on`` and commands that cannot be started are
    permanent; everything else is retried.
    """
    permanent = frozenset(stop_on)

    def should_retry(error: BaseException) -> bool:
        if isinstance(error, CommandFailedError):
            return error.returncode not in permanent
        if isinstance(error, OSError):
            return False
        return True

    return should_retry
