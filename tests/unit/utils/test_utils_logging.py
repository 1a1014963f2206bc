"""Tests for icsreader.utils.logging module."""

import logging
import logging.handlers
import os
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from icsreader.config.settings import LoggingSettings
from icsreader.utils.logging import (
    VERBOSE,
    AutoColoredFormatter,
    detect_color_mode,
    get_log_level,
    get_logger,
    setup_logging,
    setup_logging_from_settings,
)


@pytest.fixture
def clean_package_logger():
    """Restore the icsreader logger after a test configures it."""
    logger = logging.getLogger("icsreader")
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestVerboseLogging:
    """Test VERBOSE custom log level functionality."""

    def test_verbose_level_value(self) -> None:
        assert VERBOSE == 15
        assert logging.DEBUG < VERBOSE < logging.INFO

    def test_verbose_level_name(self) -> None:
        assert logging.getLevelName(VERBOSE) == "VERBOSE"

    def test_verbose_method_functionality(self) -> None:
        """Test verbose method logs at VERBOSE level."""
        logger = logging.getLogger("test_icsreader_verbose")
        logger.setLevel(VERBOSE)

        with patch.object(logger, "_log") as mock_log:
            logger.verbose("expanded %d", 3)  # type: ignore[attr-defined]

            mock_log.assert_called_once_with(VERBOSE, "expanded %d", (3,))

    def test_verbose_method_respects_level(self) -> None:
        logger = logging.getLogger("test_icsreader_verbose_level")
        logger.setLevel(logging.INFO)

        with patch.object(logger, "_log") as mock_log:
            logger.verbose("hidden")  # type: ignore[attr-defined]

            mock_log.assert_not_called()


class TestGetLogLevel:
    """Test get_log_level function."""

    def test_standard_log_levels(self) -> None:
        assert get_log_level("DEBUG") == logging.DEBUG
        assert get_log_level("INFO") == logging.INFO
        assert get_log_level("WARNING") == logging.WARNING
        assert get_log_level("ERROR") == logging.ERROR
        assert get_log_level("CRITICAL") == logging.CRITICAL

    def test_verbose_and_case(self) -> None:
        assert get_log_level("verbose") == VERBOSE
        assert get_log_level("warning") == logging.WARNING

    def test_unknown_level(self) -> None:
        with pytest.raises(ValueError):
            get_log_level("LOUD")


class TestGetLogger:
    """Test namespaced logger creation."""

    def test_prefixes_namespace(self) -> None:
        assert get_logger("ics.parser").name == "icsreader.ics.parser"

    def test_keeps_module_names(self) -> None:
        assert get_logger("icsreader.ics.builder").name == "icsreader.ics.builder"


class TestAutoColoredFormatter:
    """Test colour detection and formatting."""

    def _record(self) -> logging.LogRecord:
        return logging.LogRecord("icsreader", logging.WARNING, __file__, 1, "careful", None, None)

    def test_colors_disabled(self) -> None:
        formatter = AutoColoredFormatter("%(levelname)s %(message)s", enable_colors=False)

        assert formatter.color_mode == "none"
        assert formatter.format(self._record()) == "WARNING careful"

    def test_no_color_environment(self) -> None:
        with patch.dict(os.environ, {"NO_COLOR": "1", "TERM": "xterm-256color"}, clear=True):
            formatter = AutoColoredFormatter("%(levelname)s")

        assert formatter.color_mode == "none"

    def test_truecolor_terminal(self) -> None:
        stdout = MagicMock()
        stdout.isatty.return_value = True
        with (
            patch("icsreader.utils.logging.sys.stdout", stdout),
            patch.dict(os.environ, {"TERM": "xterm-256color"}, clear=True),
        ):
            formatter = AutoColoredFormatter("%(levelname)s %(message)s")

        assert formatter.color_mode == "truecolor"
        assert formatter.format(self._record()) == "\033[93mWARNING\033[0m careful"

    def test_not_a_tty(self) -> None:
        stdout = MagicMock()
        stdout.isatty.return_value = False
        with (
            patch("icsreader.utils.logging.sys.stdout", stdout),
            patch.dict(os.environ, {"TERM": "xterm-256color"}, clear=True),
        ):
            formatter = AutoColoredFormatter("%(levelname)s")

        assert formatter.color_mode == "none"

    def test_basic_palette_for_given_stream(self) -> None:
        stream = MagicMock()
        stream.isatty.return_value = True
        with patch.dict(os.environ, {"TERM": "xterm-color"}, clear=True):
            formatter = AutoColoredFormatter("%(levelname)s %(message)s", stream=stream)

        assert formatter.color_mode == "basic"
        assert formatter.format(self._record()) == "\033[33mWARNING\033[0m careful"


class TestDetectColorMode:
    """Test terminal capability detection."""

    def test_stream_without_isatty(self) -> None:
        with patch.dict(os.environ, {"TERM": "xterm-256color"}, clear=True):
            assert detect_color_mode(object()) == "none"  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        ("env", "expected"),
        [
            ({"TERM": "dumb", "COLORTERM": "truecolor"}, "none"),
            ({"TERM": "xterm", "COLORTERM": "24bit"}, "truecolor"),
            ({"TERM": "vt100"}, "none"),
        ],
    )
    def test_terminal_environment(self, env: dict, expected: str) -> None:
        stream = MagicMock()
        stream.isatty.return_value = True
        with patch.dict(os.environ, env, clear=True):
            assert detect_color_mode(stream) == expected


class TestSetupLogging:
    """Test handler configuration."""

    def test_console_only(self, clean_package_logger: logging.Logger) -> None:
        logger = setup_logging("DEBUG")

        assert logger is clean_package_logger
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, AutoColoredFormatter)

    def test_with_log_file(self, clean_package_logger: logging.Logger, tmp_path: Path) -> None:
        logger = setup_logging("VERBOSE", log_file="parse.log", log_dir=tmp_path / "logs")

        file_handlers = [
            handler
            for handler in logger.handlers
            if isinstance(handler, logging.handlers.RotatingFileHandler)
        ]
        assert logger.level == VERBOSE
        assert len(file_handlers) == 1
        assert Path(file_handlers[0].baseFilename) == tmp_path / "logs" / "parse.log"

    def test_from_settings(self, clean_package_logger: logging.Logger, tmp_path: Path) -> None:
        settings = MagicMock()
        settings.logging = LoggingSettings(
            console_enabled=False,
            file_enabled=True,
            file_level="INFO",
            file_directory=str(tmp_path),
            third_party_level="ERROR",
        )

        logger = setup_logging_from_settings(settings)

        assert len(logger.handlers) == 1
        handler = logger.handlers[0]
        assert isinstance(handler, logging.handlers.RotatingFileHandler)
        assert handler.level == logging.INFO
        assert Path(handler.baseFilename) == tmp_path / "icsreader.log"
        assert logging.getLogger("icalendar").level == logging.ERROR

    def test_from_settings_console(self, clean_package_logger: logging.Logger) -> None:
        settings = MagicMock()
        settings.logging = LoggingSettings(console_level="VERBOSE", console_colors=False)

        logger = setup_logging_from_settings(settings)

        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == VERBOSE
        assert logger.handlers[0].formatter.color_mode == "none"  # type: ignore[union-attr]
