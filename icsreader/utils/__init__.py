"""Utility functions and helpers package."""

from .logging import (
    VERBOSE,
    AutoColoredFormatter,
    detect_color_mode,
    get_log_level,
    get_logger,
    setup_logging,
    setup_logging_from_settings,
)

__all__ = [
    "VERBOSE",
    "AutoColoredFormatter",
    "detect_color_mode",
    "get_log_level",
    "get_logger",
    "setup_logging",
    "setup_logging_from_settings",
]
