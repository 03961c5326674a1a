"""Leveled logging to standard output and, after setup, to a dated file."""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

_LEVEL_NAMES = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}
_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


@dataclass
class Settings:
    """Where the log file goes and how it is named."""

    path: str = "logs"
    name: str = "godis"
    ext: str = "log"
    time_format: str = "%Y-%m-%d"


class _Formatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        level = _LEVEL_NAMES.get(record.levelno, record.levelname)
        stamp = time.strftime(_DATE_FORMAT, time.localtime(record.created))
        return f"[{level}][{record.filename}:{record.lineno}] {stamp} {record.getMessage()}"


class _StdoutHandler(logging.StreamHandler):
    """Writes to whatever sys.stdout is at the time of each record."""

    def __init__(self) -> None:
        super().__init__(sys.stdout)

    @property
    def stream(self):  # type: ignore[override]
        return sys.stdout

    @stream.setter
    def stream(self, value) -> None:
        pass


_logger = logging.getLogger("godis")
_logger.setLevel(logging.DEBUG)
_logger.propagate = False
_console = _StdoutHandler()
_console.setFormatter(_Formatter())
_logger.addHandler(_console)
_file_handler: Optional[logging.FileHandler] = None


def _close_file() -> None:
    global _file_handler
    if _file_handler is not None:
        _logger.removeHandler(_file_handler)
        _file_handler.close()
        _file_handler = None


def setup(settings: Settings) -> Path:
    """Also write log records to a dated file; return its path.

    Raises OSError if the directory or the file cannot be opened.
    """
    global _file_handler
    directory = Path(settings.path)
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime(settings.time_format)
    target = directory / f"{settings.name}-{stamp}.{settings.ext}"
    handler = logging.FileHandler(target, mode="a", encoding="utf-8")
    handler.setFormatter(_Formatter())
    _close_file()
    _file_handler = handler
    _logger.addHandler(handler)
    return target


def _log(level: int, args: tuple[Any, ...]) -> None:
    message = " ".join(str(arg) for arg in args)
    _logger.log(level, "%s", message, stacklevel=3)


def debug(*args: Any) -> None:
    """Log at debug level."""
    _log(logging.DEBUG, args)


def info(*args: Any) -> None:
    """Log at info level."""
    _log(logging.INFO, args)


def warn(*args: Any) -> None:
    """Log at warning level."""
    _log(logging.WARNING, args)


def error(*args: Any) -> None:
    """Log at error level."""
    _log(logging.ERROR, args)


def fatal(*args: Any) -> None:
    """Log at fatal level, then exit with status 1."""
    _log(logging.CRITICAL, args)
    raise SystemExit(1)