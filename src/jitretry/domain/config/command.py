"""Command runner configuration model."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CommandConfig(BaseModel):
    """Configuration for retrying external commands.

    Attributes:
        stop_on: Exit codes treated as permanent failures
        timeout: Per-attempt timeout in seconds (None = no timeout)
    """

    stop_on: List[int] = Field(default_factory=list)
    timeout: Optional[float] = Field(None, gt=0.0)
