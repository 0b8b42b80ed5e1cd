"""Configuration loader for gotestcraft."""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import GoTestCraftConfig

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


class ConfigLoader:
    """Configuration loader that merges config files, environment variables, and CLI arguments."""

    DEFAULT_CONFIG_FILES = [
        ".gotestcraft.toml",
        "gotestcraft.toml",
        ".gotestcraft.yml",
        ".gotestcraft.yaml",
    ]

    ENV_PREFIX = "GOTESTCRAFT_"

    # Variables sharing the prefix that are not configuration keys.
    RESERVED_ENV = frozenset({"GOTESTCRAFT_LOG_LEVEL", "GOTESTCRAFT_COMPLETION_TOKEN"})

    def __init__(
        self, config_file: str | Path | None = None, search_dir: str | Path | None = None
    ):
        """Initialize the configuration loader.

        Args:
            config_file: Path to configuration file. If None, default files are searched.
            search_dir: Directory searched for default files (current directory if None)
        """
        self.config_file = Path(config_file) if config_file else None
        self.search_dir = Path(search_dir) if search_dir else None
        self._config_cache: GoTestCraftConfig | None = None

    def load_config(
        self,
        env_overrides: dict[str, Any] | None = None,
        cli_overrides: dict[str, Any] | None = None,
        reload: bool = False,
    ) -> GoTestCraftConfig:
        """Load configuration from all sources.

        Precedence, lowest first: defaults, config file, environment, CLI.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if self._config_cache is not None and not reload:
            return self._config_cache

        config_dict: dict[str, Any] = {}

        file_config = self._load_config_file()
        if file_config:
            config_dict = self._deep_merge(config_dict, file_config)
            logger.debug("Loaded configuration from %s", self._get_config_file_path())

        env_config = env_overrides if env_overrides is not None else self._load_env_config()
        if env_config:
            config_dict = self._deep_merge(config_dict, env_config)
            logger.debug("Applied environment variable overrides")

        if cli_overrides:
            config_dict = self._deep_merge(config_dict, cli_overrides)
            logger.debug("Applied CLI argument overrides")

        try:
            self._config_cache = GoTestCraftConfig(**config_dict)
        except ValidationError as e:
            error_msg = f"Configuration validation failed: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

        return self._config_cache

    def _load_config_file(self) -> dict[str, Any] | None:
        config_file = self._get_config_file_path()

        if not config_file or not config_file.exists():
            if self.config_file is not None:
                raise ConfigurationError(f"Configuration file not found: {config_file}")
            logger.debug("No configuration file found, using defaults")
            return None

        try:
            if config_file.suffix.lower() == ".toml":
                return self._load_toml_file(config_file)
            if config_file.suffix.lower() in (".yml", ".yaml"):
                return self._load_yaml_file(config_file)
        except OSError as e:
            error_msg = f"Failed to read {config_file}: {e}"
            logger.error(error_msg)
            raise ConfigurationError(error_msg) from e

        raise ConfigurationError(f"Unknown configuration file type: {config_file}")

    def _load_toml_file(self, config_file: Path) -> dict[str, Any] | None:
        try:
            with open(config_file, "rb") as f:
                content = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_file}: {e}") from e

        if not content:
            logger.warning("Configuration file %s is empty", config_file)
            return None
        return content

    def _load_yaml_file(self, config_file: Path) -> dict[str, Any] | None:
        try:
            with open(config_file, encoding="utf-8") as f:
                content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

        if not content:
            logger.warning("Configuration file %s is empty", config_file)
            return None
        if not isinstance(content, dict):
            raise ConfigurationError(f"Configuration in {config_file} must be a mapping")
        return content

    def _load_env_config(self) -> dict[str, Any]:
        """Load configuration from environment variables.

        ``GOTESTCRAFT_GENERATION__MODE=skip`` sets ``generation.mode``.
        """
        env_config: dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(self.ENV_PREFIX) or key in self.RESERVED_ENV:
                continue
            config_key = key[len(self.ENV_PREFIX) :].lower()
            nested_keys = config_key.split("__")
            if len(nested_keys) < 2:
                continue
            self._set_nested_value(env_config, nested_keys, self._parse_env_value(value))

        return env_config

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value to appropriate Python type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            if "." not in value:
                return int(value)
            return float(value)
        except ValueError:
            pass

        if "," in value:
            return [item.strip() for item in value.split(",")]

        return value

    def _set_nested_value(self, config: dict[str, Any], keys: list, value: Any) -> None:
        current = config
        for key in keys[:-1]:
            current = current.setdefault(key, {})
        current[keys[-1]] = value

    def _get_config_file_path(self) -> Path | None:
        if self.config_file:
            return self.config_file

        base = self.search_dir or Path.cwd()
        for filename in self.DEFAULT_CONFIG_FILES:
            path = base / filename
            if path.exists():
                return path
        return None

    def _deep_merge(
        self, base: dict[str, Any], updates: dict[str, Any]
    ) -> dict[str, Any]:
        """Deeply merge updates into base dictionary."""
        result = base.copy()

        for key, value in updates.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result
