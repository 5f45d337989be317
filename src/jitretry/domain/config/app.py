"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from jitretry.domain.config.command import CommandConfig
from jitretry.domain.config.retry import RetryOptions


class AppConfig(BaseModel):
    """Main application configuration.

    Aggregates all configuration sections. Types are validated at load time
    to fail fast on malformed files.

    Attributes:
        retry: Backoff and budget options
        command: External command options
    """

    retry: RetryOptions = Field(default_factory=RetryOptions)
    command: CommandConfig = Field(default_factory=CommandConfig)

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "retry": {
                    "attempts": 5,
                    "base": 0.2,
                    "max_interval": 5.0,
                    "max_wait": 20.0,
                    "exponent": 2.0,
                    "jitter": 0.5,
                },
                "command": {
                    "stop_on": [2, 126, 127],
                    "timeout": 30.0,
                },
            }
        },
    )
