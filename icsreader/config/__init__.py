"""Configuration management package."""

from .settings import ConfigurationError, ICSReaderSettings, LoggingSettings, get_settings

__all__ = [
    "ConfigurationError",
    "ICSReaderSettings",
    "LoggingSettings",
    "get_settings",
]
