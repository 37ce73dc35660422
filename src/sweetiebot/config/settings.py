"""Process Settings - Bot-wide settings loaded once at startup.

Guild configuration lives in the ConfigStore. This module covers the few
settings that belong to the process itself (database location, logging,
migration policy), loaded with the following precedence:

    code defaults < config/default.toml < .env < SWEETIEBOT_* environment variables
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

from dotenv import load_dotenv
import structlog

logger = structlog.get_logger(__name__)

ENV_PREFIX = "SWEETIEBOT_"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class SettingKey:
    """Defines a single process setting with validation.

    Attributes:
        value_type: Expected Python type (str, int, float, bool)
        default: Default value if not specified in config files
        min_value: Minimum value for numeric types (optional)
        max_value: Maximum value for numeric types (optional)
        validator: Custom validation function (optional)
    """
    value_type: type
    default: Any
    min_value: Optional[Any] = None
    max_value: Optional[Any] = None
    validator: Optional[Callable[[Any], bool]] = None


SETTINGS: dict[str, SettingKey] = {
    # ===== DATABASE =====
    "database.path": SettingKey(
        value_type=str,
        default="data/sweetiebot.db",
        validator=lambda v: len(v.strip()) > 0,
    ),
    "database.wal_mode": SettingKey(
        value_type=bool,
        default=True,
    ),

    # ===== LOGGING =====
    "logging.level": SettingKey(
        value_type=str,
        default="INFO",
        validator=lambda v: v in LOG_LEVELS,
    ),
    "logging.json_output": SettingKey(
        value_type=bool,
        default=False,
    ),

    # ===== BOT =====
    "bot.app_name": SettingKey(
        value_type=str,
        default="Sweetie Bot",
        validator=lambda v: len(v.strip()) > 0,
    ),
    "bot.max_message_length": SettingKey(
        value_type=int,
        default=2000,
        min_value=100,
        max_value=4000,
    ),

    # ===== MIGRATIONS =====
    "migrations.strict": SettingKey(
        value_type=bool,
        default=False,
    ),
}


def get_setting_key(key: str) -> SettingKey:
    """Get setting definition by key.

    Raises:
        KeyError: If key not found in SETTINGS
    """
    if key not in SETTINGS:
        raise KeyError(f"Setting '{key}' not found in registry")
    return SETTINGS[key]


def validate_setting(key: str, value: Any) -> tuple[bool, Optional[str]]:
    """Validate a setting value against its registered definition.

    Args:
        key: Setting key path
        value: Value to validate

    Returns:
        Tuple of (is_valid, error_message)
        error_message is None if valid
    """
    try:
        setting = get_setting_key(key)
    except KeyError as e:
        return False, str(e)

    # bool is an int subclass; keep the two apart
    if setting.value_type is not bool and isinstance(value, bool):
        return False, f"Expected type {setting.value_type.__name__}, got bool"
    if setting.value_type is float and isinstance(value, int):
        value = float(value)
    if not isinstance(value, setting.value_type):
        return False, f"Expected type {setting.value_type.__name__}, got {type(value).__name__}"

    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if setting.min_value is not None and value < setting.min_value:
            return False, f"Value {value} below minimum {setting.min_value}"
        if setting.max_value is not None and value > setting.max_value:
            return False, f"Value {value} above maximum {setting.max_value}"

    if setting.validator is not None:
        try:
            if not setting.validator(value):
                return False, f"Custom validation failed for value: {value}"
        except Exception as e:
            return False, f"Validator error: {str(e)}"

    return True, None


def get_default_settings() -> dict[str, Any]:
    return {key: setting.default for key, setting in SETTINGS.items()}


def _flatten_toml(data: dict, prefix: str = "") -> dict[str, Any]:
    """Flatten nested TOML tables to dotted keys."""
    result = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else key
        if isinstance(value, dict):
            result.update(_flatten_toml(value, full_key))
        else:
            result[full_key] = value
    return result


def _parse_env_value(value: str, target_type: type) -> Any:
    """Parse an environment variable string to the setting's type.

    Raises:
        ValueError: If parsing fails
    """
    if target_type == bool:
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "on"):
            return True
        if lowered in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"'{value}' is not a boolean")
    elif target_type == int:
        return int(value)
    elif target_type == float:
        return float(value)
    elif target_type == str:
        return value
    else:
        raise ValueError(f"Unsupported type for env parsing: {target_type}")


class Settings:
    """Loads and holds process settings.

    Attributes:
        values: Validated settings keyed by dotted path
    """

    def __init__(self, config_file: Optional[Path] = None, env_file: Optional[Path] = None):
        """Initialize settings loader.

        Args:
            config_file: Path to TOML config file (default: config/default.toml)
            env_file: Path to .env file (default: .env in the working directory)
        """
        self.config_file = config_file if config_file is not None else Path("config/default.toml")
        self.env_file = env_file if env_file is not None else Path(".env")
        self.values: dict[str, Any] = get_default_settings()

    def load(self) -> dict[str, Any]:
        """Load settings from TOML, .env and environment variables.

        Returns:
            Dictionary of validated settings

        Raises:
            ValueError: If a value fails to parse or validate
        """
        logger.info("loading_settings", config_file=str(self.config_file))
        values = get_default_settings()

        if self.config_file.exists():
            with open(self.config_file, "rb") as f:
                flattened = _flatten_toml(tomllib.load(f))
            unknown = sorted(set(flattened) - set(SETTINGS))
            if unknown:
                logger.warning("unknown_settings_ignored", keys=unknown)
            for key in SETTINGS:
                if key in flattened:
                    values[key] = flattened[key]
            logger.info("toml_settings_loaded", keys_count=len(flattened))
        else:
            logger.warning("config_file_not_found",
                           config_file=str(self.config_file),
                           using_defaults=True)

        if self.env_file.exists():
            load_dotenv(self.env_file)
            logger.info("env_file_loaded", env_file=str(self.env_file))

        # SWEETIEBOT_DATABASE_PATH overrides database.path
        for key, setting in SETTINGS.items():
            env_key = ENV_PREFIX + key.replace(".", "_").upper()
            env_value = os.getenv(env_key)
            if env_value is None:
                continue
            try:
                values[key] = _parse_env_value(env_value, setting.value_type)
            except ValueError as e:
                logger.error("env_parse_error", key=key, env_key=env_key, error=str(e))
                raise ValueError(f"Failed to parse env var {env_key}: {e}") from e
            logger.info("env_override_applied", key=key, env_key=env_key)

        for key, value in values.items():
            is_valid, error_msg = validate_setting(key, value)
            if not is_valid:
                logger.error("settings_validation_failed", key=key, error=error_msg)
                raise ValueError(f"Settings validation failed for '{key}': {error_msg}")

        self.values = values
        logger.info("settings_loaded", keys_count=len(values))
        return values

    def get(self, key: str) -> Any:
        """Get a setting value.

        Raises:
            KeyError: If key not found
        """
        setting = get_setting_key(key)
        return self.values.get(key, setting.default)


# Global instance (initialized at startup)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get global settings instance.

    Raises:
        RuntimeError: If settings not initialized
    """
    if _settings is None:
        raise RuntimeError("Settings not initialized. Call initialize_settings() first.")
    return _settings


def initialize_settings(config_file: Optional[Path] = None,
                        env_file: Optional[Path] = None) -> Settings:
    """Load the global settings.

    Args:
        config_file: Path to TOML config file
        env_file: Path to .env file

    Returns:
        Loaded Settings instance
    """
    global _settings
    _settings = Settings(config_file, env_file)
    _settings.load()
    return _settings
