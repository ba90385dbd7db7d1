"""Log formatting and a stream that routes error lines to stderr."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import TextIO

from termcolor import colored

_ERROR_LEVELS = frozenset({"Error", "Fatal", "Panic"})
_LEVEL_TITLES = {
    logging.CRITICAL: "Fatal",
    logging.ERROR: "Error",
    logging.WARNING: "Warning",
    logging.INFO: "Info",
    logging.DEBUG: "Debug",
}


class CustomFormatter(logging.Formatter):
    """Prefixes messages with a cyan ``[Draft]``, or a red level name for errors."""

    def format(self, record: logging.LogRecord) -> str:
        level = _LEVEL_TITLES.get(record.levelno) or record.levelname.title()
        message = record.getMessage()
        if level in _ERROR_LEVELS:
            return f"{colored(level, 'red', attrs=['bold'])}: {message}"
        return f"{colored('[Draft]', 'cyan', attrs=['bold'])} {message}"


@dataclass
class OutputSplitter:
    """A writable stream sending error, fatal and panic text to stderr, the rest to stdout."""

    stdout: TextIO | None = None
    stderr: TextIO | None = None

    def _target(self, data: str) -> TextIO:
        if any(word in data for word in _ERROR_LEVELS):
            return self.stderr or sys.stderr
        return self.stdout or sys.stdout

    def write(self, data: str) -> int:
        return self._target(data).write(data)

    def flush(self) -> None:
        (self.stdout or sys.stdout).flush()
        (self.stderr or sys.stderr).flush()