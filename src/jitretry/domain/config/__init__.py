"""Configuration models with Pydantic validation."""

from jitretry.domain.config.app import AppConfig
from jitretry.domain.config.command import CommandConfig
from jitretry.domain.config.retry import RetryOptions

__all__ = [
    "AppConfig",
    "CommandConfig",
    "RetryOptions",
]
