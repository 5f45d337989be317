"""Configuration manager for loading and validating .jitretry.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from jitretry.domain.config import AppConfig, CommandConfig, RetryOptions

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".jitretry.yml"

# Environment variable -> retry option
ENV_OVERRIDES = {
    "JITRETRY_ATTEMPTS": "attempts",
    "JITRETRY_BASE": "base",
    "JITRETRY_MAX_INTERVAL": "max_interval",
    "JITRETRY_MAX_WAIT": "max_wait",
    "JITRETRY_EXPONENT": "exponent",
    "JITRETRY_JITTER": "jitter",
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .jitretry.yml and environment variables

    Configuration priority:
    1. Default values (defined in Pydantic models)
    2. .jitretry.yml file (searched from current directory upwards)
    3. Environment variables (JITRETRY_*)
    4. CLI arguments (handled by CLI layer)

    Only value types are checked here. Range checks happen when a Retrier
    is built from the options.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .jitretry.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If configuration validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError("Configuration validation failed:\n" + "\n".join(errors)) from e

    def _find_config_file(self) -> Optional[Path]:
        """Find .jitretry.yml starting from the current directory

        Returns:
            Path to config file or None if not found
        """
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and environment

        Raises:
            ConfigurationError: If the file is not valid YAML
            ValidationError: If a value has the wrong type
        """
        config_dict: Dict[str, Any] = copy.deepcopy(AppConfig().model_dump())

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Failed to parse {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"Expected a mapping at the top of {self.config_path}")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply JITRETRY_* environment variable overrides"""
        retry_section = config.get("retry")
        for env_name, option in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if not value:
                continue
            if not isinstance(retry_section, dict):
                raise ConfigurationError(
                    f"Cannot apply {env_name}: the retry section must be a mapping, got {retry_section!r}"
                )
            logger.debug(f"Overriding retry.{option} from {env_name}")
            retry_section[option] = value
        return config

    def get_retry_options(self) -> RetryOptions:
        """Get retry options"""
        return self.config.retry

    def get_command_config(self) -> CommandConfig:
        """Get command configuration"""
        return self.config.command
