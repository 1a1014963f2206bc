"""Logging configuration and setup utilities."""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, TextIO

if TYPE_CHECKING:
    from ..config.settings import ICSReaderSettings

LOGGER_NAMESPACE = "icsreader"

# Custom log level between INFO(20) and DEBUG(10)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")

MAX_LOG_FILE_BYTES = 10 * 1024 * 1024

THIRD_PARTY_LOGGERS = ("icalendar", "dateutil")


def verbose(self: logging.Logger, message: Any, *args: Any, **kwargs: Any) -> None:
    """Log ``message`` at the VERBOSE level.

    Example:
        >>> logger = logging.getLogger(__name__)
        >>> logger.verbose("Expanded %d occurrences", count)
    """
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


# Add verbose method to all Logger instances
logging.Logger.verbose = verbose  # type: ignore[attr-defined]


def get_log_level(level_name: str) -> int:
    """Get numeric log level from string name, including custom VERBOSE level.

    Args:
        level_name: Log level name (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Numeric log level value

    Raises:
        ValueError: If level name is not recognized

    Example:
        >>> get_log_level("verbose")
        15
    """
    level_name = level_name.upper()
    if level_name == "VERBOSE":
        return VERBOSE
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    return level


# ANSI escapes per level name: (24-bit capable terminal, 8-colour terminal)
LEVEL_COLORS = {
    "CRITICAL": ("\033[91m\033[1m", "\033[31m\033[1m"),
    "ERROR": ("\033[91m", "\033[31m"),
    "WARNING": ("\033[93m", "\033[33m"),
    "INFO": ("\033[94m", "\033[34m"),
    "VERBOSE": ("\033[92m", "\033[32m"),
    "DEBUG": ("\033[95m", "\033[35m"),
}
RESET = "\033[0m"


def detect_color_mode(stream: Optional[TextIO] = None) -> str:
    """Return ``"truecolor"``, ``"basic"`` or ``"none"`` for an output stream.

    ``NO_COLOR`` always wins. Otherwise the stream (stdout by default) must be
    a TTY and ``TERM``/``COLORTERM`` pick the palette.
    """
    if "NO_COLOR" in os.environ:
        return "none"

    stream = sys.stdout if stream is None else stream
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return "none"

    term = os.environ.get("TERM", "").lower()
    if term == "dumb":
        return "none"
    if os.environ.get("COLORTERM", "").lower() in ("truecolor", "24bit") or "256color" in term:
        return "truecolor"
    if "color" in term:
        return "basic"
    return "none"


class AutoColoredFormatter(logging.Formatter):
    """Formatter that colours the level name when the terminal supports it."""

    def __init__(
        self,
        *args: Any,
        enable_colors: bool = True,
        stream: Optional[TextIO] = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.color_mode = detect_color_mode(stream) if enable_colors else "none"

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        palette = LEVEL_COLORS.get(record.levelname)
        if self.color_mode == "none" or palette is None:
            return formatted

        color = palette[0] if self.color_mode == "truecolor" else palette[1]
        return formatted.replace(record.levelname, f"{color}{record.levelname}{RESET}", 1)


def _file_handler(
    log_path: Path, level: int, backup_count: int = 5
) -> logging.handlers.RotatingFileHandler:
    log_path.parent.mkdir(parents=True, exist_ok=True)
    # Use rotating file handler to prevent large log files
    handler = logging.handlers.RotatingFileHandler(
        log_path, maxBytes=MAX_LOG_FILE_BYTES, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    return handler


def setup_logging(
    log_level: str = "INFO", log_file: Optional[str] = None, log_dir: Optional[Path] = None
) -> logging.Logger:
    """Set up package logging with console and optional file output.

    Args:
        log_level: Logging level (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name
        log_dir: Optional log directory path

    Returns:
        Configured ``icsreader`` logger
    """
    numeric_level = get_log_level(log_level)

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(
        AutoColoredFormatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
            stream=console_handler.stream,
        )
    )
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir) / log_file if log_dir else Path(log_file)
        # File logs everything
        logger.addHandler(_file_handler(log_path, logging.DEBUG))
        logger.info(f"Logging to file: {log_path}")

    for lib in THIRD_PARTY_LOGGERS:
        logging.getLogger(lib).setLevel(logging.WARNING)

    logger.debug(f"Logging initialized at {log_level} level")
    return logger


def setup_logging_from_settings(settings: "ICSReaderSettings") -> logging.Logger:
    """Configure the ``icsreader`` logger from :class:`LoggingSettings`.

    Args:
        settings: Settings whose ``logging`` section drives the handlers

    Returns:
        Configured ``icsreader`` logger
    """
    config = settings.logging

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(logging.DEBUG)  # Allow all levels, handlers will filter
    logger.handlers.clear()

    if config.console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(get_log_level(config.console_level))
        console_handler.setFormatter(
            AutoColoredFormatter(
                "%(asctime)s - %(levelname)s - %(message)s",
                datefmt="%H:%M:%S",
                enable_colors=config.console_colors,
                stream=console_handler.stream,
            )
        )
        logger.addHandler(console_handler)

    if config.file_enabled:
        log_dir = Path(config.file_directory) if config.file_directory else Path.cwd()
        file_handler = _file_handler(
            log_dir / config.file_name,
            get_log_level(config.file_level),
            backup_count=config.max_log_files,
        )
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {file_handler.baseFilename}")

    third_party_level = get_log_level(config.third_party_level)
    for lib in THIRD_PARTY_LOGGERS:
        logging.getLogger(lib).setLevel(third_party_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger in the ``icsreader`` namespace.

    Example:
        >>> get_logger("ics.parser").name
        'icsreader.ics.parser'
    """
    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
