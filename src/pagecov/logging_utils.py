"""Custom logging utilities for PageCov."""
# src/pagecov/logging_utils.py

import logging
import sys
import time
from logging import FileHandler
from pathlib import Path

_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class _UTCFormatter(logging.Formatter):
    """Formatter stamping records in UTC with 6-digit microseconds and a 'Z' suffix."""

    converter = staticmethod(time.gmtime)

    def __init__(self, fmt: str) -> None:
        super().__init__(fmt=fmt, datefmt=_DATE_FORMAT)

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Format the time with 6-digit microseconds and a 'Z' for UTC."""
        s = time.strftime(datefmt or self.default_time_format, self.converter(record.created))
        microseconds = int((record.created - int(record.created)) * 1_000_000)
        return f"{s}.{microseconds:06d}Z"


class ConsoleFormatter(_UTCFormatter):
    """Short user-facing console lines tagged with the PageCov version."""

    def __init__(self, version: str) -> None:
        """Initialize the formatter with the PageCov version."""
        super().__init__(f"%(asctime)s | PageCov - {version} | %(message)s")


class FileFormatter(_UTCFormatter):
    """Detailed debug-file lines with logger, function, line number, and level."""

    def __init__(self) -> None:
        """Initialize the detailed file formatter."""
        super().__init__("%(asctime)s | %(name)-22s | %(funcName)-24s:%(lineno)-4d | %(levelname)-8s | %(message)s")


def setup_logging(version: str, *, debug: bool = False, log_file: Path | None = None) -> None:
    """
    Configure the root logger for the CLI.

    Console lines go to stdout at INFO, or DEBUG with `debug`. With `debug`
    and a `log_file`, every record is also written to that file in the
    detailed format; if the file cannot be created, logging stays console-only.

    Args:
        version: The PageCov version, included in console lines.
        debug: Lower the level to DEBUG and enable the debug file.
        log_file: Where to write the debug log.

    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    level = logging.DEBUG if debug else logging.INFO
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter(version))
    root_logger.addHandler(console_handler)

    if not debug or log_file is None:
        return

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = FileHandler(log_file, mode="w", encoding="utf-8")
    except OSError:
        root_logger.exception("Failed to create debug log file. Continuing with console logging only.")
        return
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(FileFormatter())
    root_logger.addHandler(file_handler)
    root_logger.debug("Detailed logs will be written to %s", log_file)
