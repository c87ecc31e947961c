"""Logging utilities.

Console and rotating file logging for the whole application.

Features:
    - Colored console output when attached to a terminal
    - ``app.log`` and ``error.log`` under the data directory, rotated
    - Relocating the log files once settings are known
    - Global log level management
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from inkora.utils.constants import LOG_DIR

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_FILE_BACKUP_COUNT = 5

# (file name, fixed level or None to follow the global level)
LOG_FILES = (("app.log", None), ("error.log", logging.ERROR))

_log_level: int = logging.INFO
_log_dir: Path = LOG_DIR
_file_handlers: list[RotatingFileHandler] = []
_root_configured: bool = False


class ColoredFormatter(logging.Formatter):
    """Console formatter coloring the level name."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # Copy, so file handlers see the plain level name
        record = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelno, "")
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def _console_handler() -> logging.Handler:
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(_log_level)
    if sys.stdout.isatty():
        console.setFormatter(ColoredFormatter(LOG_FORMAT, DATE_FORMAT))
    else:
        console.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    return console


def _detach_file_handlers(root: logging.Logger) -> None:
    while _file_handlers:
        handler = _file_handlers.pop()
        root.removeHandler(handler)
        handler.close()


def _attach_file_handlers(root: logging.Logger, log_dir: Path) -> None:
    """Open the rotating log files in ``log_dir``.

    An unwritable directory leaves console logging only.
    """
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        root.warning(f"File logging disabled, cannot create {log_dir}: {e}")
        return

    for file_name, fixed_level in LOG_FILES:
        handler = RotatingFileHandler(
            log_dir / file_name,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setLevel(fixed_level if fixed_level is not None else _log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
        root.addHandler(handler)
        _file_handlers.append(handler)


def _configure_root_logger() -> None:
    """Configure the root logger once."""
    global _root_configured
    if _root_configured:
        return

    root = logging.getLogger()
    root.setLevel(_log_level)
    root.addHandler(_console_handler())
    _root_configured = True
    _attach_file_handlers(root, _log_dir)


def setup_logger(name: str, level: Optional[int] = None) -> logging.Logger:
    """Set up and return a logger.

    Args:
        name: Logger name, usually ``__name__``
        level: Log level, defaults to the global level

    Returns:
        Configured logger
    """
    _configure_root_logger()
    logger = logging.getLogger(name)
    logger.setLevel(level if level is not None else _log_level)
    return logger


def set_log_dir(path: Path) -> None:
    """Write the log files to ``path`` from now on.

    Before the first logger is set up this only records the directory;
    afterwards the open log files are closed and reopened there.
    """
    global _log_dir
    path = Path(path)
    if path == _log_dir and (_file_handlers or not _root_configured):
        return
    _log_dir = path

    if _root_configured:
        root = logging.getLogger()
        _detach_file_handlers(root)
        _attach_file_handlers(root, path)


def get_log_dir() -> Path:
    """Directory currently holding the log files."""
    return _log_dir


def set_log_level(level: int | str) -> None:
    """Set the global log level."""
    global _log_level
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    _log_level = level

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if handler.level != logging.ERROR:
            handler.setLevel(level)


def get_log_level() -> int:
    """Get the current global log level."""
    return _log_level


def get_log_level_name() -> str:
    """Get the current global log level name."""
    return logging.getLevelName(_log_level)
