"""Tests for the logging utilities module."""

import logging
import time
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from pagecov.logging_utils import ConsoleFormatter, FileFormatter, setup_logging


def _record(name: str = "test", level: int = logging.INFO, msg: str = "Test", lineno: int = 1) -> logging.LogRecord:
    return logging.LogRecord(name=name, level=level, pathname="test.py", lineno=lineno, msg=msg, args=(), exc_info=None)


class TestConsoleFormatter(unittest.TestCase):
    """Test suite for ConsoleFormatter class."""

    def test_console_formatter_includes_version(self) -> None:
        """1. Initialization: Formats records with the application version."""
        formatter = ConsoleFormatter("1.0.0")

        assert formatter.datefmt == "%Y-%m-%dT%H:%M:%S"
        assert formatter.converter == time.gmtime
        formatted = formatter.format(_record(msg="Coverage started"))
        assert "PageCov - 1.0.0" in formatted
        assert "Coverage started" in formatted

    def test_console_formatter_format_time_with_microseconds(self) -> None:
        """2. Time Format: Formats time with 6-digit microseconds and 'Z' suffix."""
        formatter = ConsoleFormatter("1.0.0")
        record = _record()
        record.created = 1234567890.123456

        formatted_time = formatter.formatTime(record, formatter.datefmt)

        assert formatted_time.startswith("2009-02-13T23:31:30")
        assert formatted_time.endswith("Z")
        assert formatted_time.split(".")[-1].rstrip("Z") == "123456"


class TestFileFormatter(unittest.TestCase):
    """Test suite for FileFormatter class."""

    def test_file_formatter_detailed_format(self) -> None:
        """1. Detailed Format: Includes logger name, function name, line number, and level."""
        formatter = FileFormatter()
        record = _record(name="pagecov.js_coverage", level=logging.DEBUG, msg="Detailed log", lineno=123)
        record.funcName = "_fetch_and_register"

        formatted = formatter.format(record)

        assert "pagecov.js_coverage" in formatted
        assert "_fetch_and_register" in formatted
        assert "123" in formatted
        assert "DEBUG" in formatted
        assert "Detailed log" in formatted

    def test_file_formatter_format_time_without_datefmt(self) -> None:
        """2. Time Format: Falls back to the default time format with microseconds."""
        formatter = FileFormatter()
        record = _record()
        record.created = 9876543210.654321

        formatted_time = formatter.formatTime(record)

        assert formatted_time.endswith("Z")
        assert formatted_time.split(".")[-1].rstrip("Z") == "654321"


class TestSetupLogging(unittest.TestCase):
    """Test suite for setup_logging function."""

    def tearDown(self) -> None:
        """Clean up logging state after each test."""
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.WARNING)

    def test_setup_logging_default_mode(self) -> None:
        """1. Default Mode: Sets up INFO level console logging only."""
        setup_logging("1.0.0", debug=False, log_file=Path("/unused/debug.log"))

        root_logger = logging.getLogger()
        assert root_logger.level == logging.INFO
        assert len(root_logger.handlers) == 1
        console_handler = root_logger.handlers[0]
        assert isinstance(console_handler, logging.StreamHandler)
        assert isinstance(console_handler.formatter, ConsoleFormatter)

    def test_setup_logging_clears_existing_handlers(self) -> None:
        """2. Handler Cleanup: Clears existing handlers before setup."""
        dummy_handler = logging.StreamHandler()
        logging.getLogger().addHandler(dummy_handler)

        setup_logging("1.0.0")

        assert dummy_handler not in logging.getLogger().handlers

    def test_setup_logging_debug_mode(self) -> None:
        """3. Debug Mode: Adds a DEBUG file handler writing to the given log file."""
        log_file = Path("/mock/log/dir/debug.log")

        with patch("pathlib.Path.mkdir") as mock_mkdir, patch("pagecov.logging_utils.FileHandler") as mock_file_handler:
            mock_handler_instance = MagicMock()
            mock_handler_instance.level = logging.DEBUG
            mock_file_handler.return_value = mock_handler_instance

            setup_logging("1.0.0", debug=True, log_file=log_file)

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        mock_mkdir.assert_called_once_with(parents=True, exist_ok=True)
        mock_file_handler.assert_called_once_with(log_file, mode="w", encoding="utf-8")
        mock_handler_instance.setFormatter.assert_called_once()
        assert isinstance(mock_handler_instance.setFormatter.call_args[0][0], FileFormatter)

    def test_setup_logging_debug_file_handler_failure(self) -> None:
        """4. File Handler Failure: Continues with console logging if the log file cannot be created."""
        with patch("pathlib.Path.mkdir", side_effect=OSError("Cannot create directory")):
            setup_logging("1.0.0", debug=True, log_file=Path("/readonly/debug.log"))

        root_logger = logging.getLogger()
        assert root_logger.level == logging.DEBUG
        assert len(root_logger.handlers) == 1
        assert not isinstance(root_logger.handlers[0], logging.FileHandler)
