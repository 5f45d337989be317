"""Configuration loading"""

from jitretry.infrastructure.config.config_manager import ConfigManager, ConfigurationError

__all__ = ["ConfigManager", "ConfigurationError"]
