"""Console logging formatter."""

from __future__ import annotations

import logging
import os
import sys
from typing import TextIO

PACKAGE_PREFIX = "karaoke_queue."


class ColoredFormatter(logging.Formatter):
    """Colors the level name and shortens project logger names.

    ``karaoke_queue.application.services.cast_service`` is shown as
    ``application.services.cast_service``. Color is off when ``NO_COLOR`` is
    set or the stream is not a TTY, and forced on by ``FORCE_COLOR``.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",     # cyan
        logging.INFO: "\033[32m",      # green
        logging.WARNING: "\033[33m",   # yellow
        logging.ERROR: "\033[31m",     # red
        logging.CRITICAL: "\033[1;31m",  # bold red
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str | None = None,
        datefmt: str | None = None,
        stream: TextIO | None = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._stream = stream

    def _use_color(self) -> bool:
        if os.environ.get("NO_COLOR") is not None:
            return False
        if os.environ.get("FORCE_COLOR") is not None:
            return True
        stream = self._stream or sys.stdout
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        record = logging.makeLogRecord(record.__dict__)
        if record.name.startswith(PACKAGE_PREFIX):
            record.name = record.name[len(PACKAGE_PREFIX):]
        if self._use_color():
            color = self.COLORS.get(record.levelno, "")
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)
