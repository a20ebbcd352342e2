"""Process-wide logging setup writing timestamped lines."""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime
from typing import TextIO

LOGGER_NAME = "dufs"

_LEVEL_NAMES = {
    logging.CRITICAL: "ERROR",
    logging.ERROR: "ERROR",
    logging.WARNING: "WARN",
    logging.INFO: "INFO",
    logging.DEBUG: "DEBUG",
}


def _level_name(level: int) -> str:
    for threshold in sorted(_LEVEL_NAMES, reverse=True):
        if level >= threshold:
            return _LEVEL_NAMES[threshold]
    return "TRACE"


def format_record(level: int, message: str, now: datetime) -> str:
    """Format a log line as ``<rfc3339 time> <LEVEL> - <message>``."""
    if now.tzinfo is None:
        now = now.astimezone()
    timestamp = now.isoformat(timespec="seconds")
    if timestamp.endswith("+00:00"):
        timestamp = timestamp[: -len("+00:00")] + "Z"
    return f"{timestamp} {_level_name(level)} - {message}"


class _SimpleHandler(logging.Handler):
    def __init__(self, file: TextIO | None) -> None:
        super().__init__(logging.INFO)
        self._file = file

    def emit(self, record: logging.LogRecord) -> None:
        try:
            now = datetime.fromtimestamp(record.created).astimezone()
            text = format_record(record.levelno, record.getMessage(), now)
            if self._file is not None:
                self._file.write(text + "\n")
                self._file.flush()
            elif record.levelno > logging.INFO:
                print(text, file=sys.stderr)
            else:
                print(text, file=sys.stdout)
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        try:
            if self._file is not None:
                self._file.close()
                self._file = None
        finally:
            super().close()


def init(log_file: str | os.PathLike | None = None) -> logging.Logger:
    """Route the package logger to ``log_file`` or to stdout/stderr."""
    file = None
    if log_file is not None:
        try:
            file = open(log_file, "a", encoding="utf-8")
        except OSError as exc:
            raise OSError(f"Failed to open the log file at '{os.fspath(log_file)}'") from exc
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.addHandler(_SimpleHandler(file))
    logger.setLevel(logging.INFO)
    logger.propagate = False
    return logger