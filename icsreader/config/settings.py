"""Settings management using Pydantic for type validation and configuration."""

import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

ENV_PREFIX = "ICSREADER_"

# Forward bound for unbounded recurrence rules (signed 32-bit epoch limit)
DEFAULT_RECURRENCE_CUTOFF = datetime(2038, 1, 19, 3, 14, 7, tzinfo=timezone.utc)


class ConfigurationError(Exception):
    """Raised when a configuration file cannot be read or applied."""


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    # Console Logging
    console_enabled: bool = Field(default=True, description="Enable console logging")
    console_level: str = Field(
        default="WARNING",
        description="Console log level: DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL",
    )
    console_colors: bool = Field(
        default=True, description="Enable colored console output (auto-detected)"
    )

    # File Logging
    file_enabled: bool = Field(default=False, description="Enable file logging")
    file_level: str = Field(default="DEBUG", description="File log level")
    file_directory: Optional[str] = Field(
        default=None, description="Log directory (defaults to the working directory)"
    )
    file_name: str = Field(default="icsreader.log", description="Log file name")
    max_log_files: int = Field(default=5, description="Maximum number of rotated log files")

    # Third-party Libraries
    third_party_level: str = Field(
        default="WARNING", description="Log level for third-party libraries"
    )


class ICSReaderSettings(BaseSettings):
    """Parser settings with environment variable and YAML support."""

    # Private attributes
    _explicit_args: set = PrivateAttr(default_factory=set)
    _env_vars_set: set = PrivateAttr(default_factory=set)

    # Date/time normalization
    default_timezone: str = Field(
        default="local", description="Output timezone: 'local', 'UTC' or an IANA name"
    )

    # Recurrence expansion
    enable_rrule_expansion: bool = Field(default=True, description="Expand RRULE occurrences")
    recurrence_cutoff: datetime = Field(
        default=DEFAULT_RECURRENCE_CUTOFF,
        description="Last instant generated for rules without COUNT or UNTIL",
    )
    rrule_max_occurrences: int = Field(
        default=5000, ge=1, description="Maximum occurrences generated for one event"
    )

    # Configuration file
    config_file: Optional[Path] = Field(default=None, description="Optional YAML config file")

    # Logging Configuration
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings, description="Logging settings"
    )

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        validate_assignment=True,
        extra="ignore",
    )

    def __init__(self, **kwargs: Any) -> None:
        # Track which environment variables are set before calling parent
        env_vars_set = {
            key[len(ENV_PREFIX) :].lower().split("__")[0]
            for key in os.environ
            if key.upper().startswith(ENV_PREFIX)
        }

        super().__init__(**kwargs)

        # Track which arguments were explicitly provided
        self._explicit_args = set(kwargs.keys())
        self._env_vars_set = env_vars_set

        # Load YAML configuration after basic initialization
        self._load_yaml_config()

    def _find_config_file(self) -> Optional[Path]:
        """Return the configured YAML file, or the user config file if present."""
        if self.config_file is not None:
            if not self.config_file.exists():
                raise ConfigurationError(f"Config file not found: {self.config_file}")
            return self.config_file

        user_config = Path.home() / ".config" / "icsreader" / "config.yaml"
        if user_config.exists():
            return user_config

        return None

    def _is_overridden(self, setting: str) -> bool:
        return setting in self._explicit_args or setting in self._env_vars_set

    def _load_parser_config(self, config_data: dict) -> None:
        """Load parser settings from YAML data."""
        parser_config = config_data.get("parser") or {}
        if not isinstance(parser_config, dict):
            raise ConfigurationError("'parser' section must be a mapping")

        parser_settings = [
            "default_timezone",
            "enable_rrule_expansion",
            "recurrence_cutoff",
            "rrule_max_occurrences",
        ]
        for setting in parser_settings:
            if setting in parser_config and not self._is_overridden(setting):
                setattr(self, setting, parser_config[setting])

    def _load_logging_config(self, config_data: dict) -> None:
        """Load logging configuration from YAML data."""
        logging_config = config_data.get("logging") or {}
        if not isinstance(logging_config, dict):
            raise ConfigurationError("'logging' section must be a mapping")
        if self._is_overridden("logging"):
            return

        updates = {
            key: value
            for key, value in logging_config.items()
            if key in LoggingSettings.model_fields
        }
        if updates:
            self.logging = LoggingSettings(**{**self.logging.model_dump(), **updates})

    def _load_yaml_config(self) -> None:
        """Load configuration from YAML file if it exists."""
        config_file = self._find_config_file()
        if config_file is None:
            return

        try:
            with config_file.open(encoding="utf-8") as f:
                config_data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not load config file {config_file}: {e}") from e

        if not isinstance(config_data, dict):
            raise ConfigurationError(f"Config file {config_file} must contain a mapping")

        self._load_parser_config(config_data)
        self._load_logging_config(config_data)
        logger.debug("Loaded configuration from %s", config_file)


def get_settings(**kwargs: Any) -> ICSReaderSettings:
    """Create settings from explicit arguments, environment and YAML."""
    return ICSReaderSettings(**kwargs)
