"""Local console mirror for shipped entries.

The echo writes straight to its own stream and never goes through
``logging`` or loguru, so intercepted host output can never see it.
"""

from __future__ import annotations

import sys
import threading
from datetime import datetime
from typing import Optional, TextIO

from ..core.entries import LogEntry, LogLevel

_RESET = "\033[0m"
_COLORS = {
    LogLevel.DEBUG: "\033[90m",  # gray
    LogLevel.INFO: "\033[37m",  # white
    LogLevel.WARN: "\033[33m",  # yellow
    LogLevel.ERROR: "\033[31m",  # red
    LogLevel.CRITICAL: "\033[1;35m",  # bold magenta
}


class ConsoleEcho:
    """Renders entries as timestamped, color-tagged console lines."""

    def __init__(self, stream: Optional[TextIO] = None, colorize: Optional[bool] = None):
        """Initialize the console echo.

        Args:
            stream: Output stream, resolved to stdout at write time when None
            colorize: Force colors on/off, defaults to whether the stream is a TTY
        """
        self._stream = stream
        self._colorize = colorize
        self._lock = threading.Lock()

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stdout

    def format(self, entry: LogEntry, colorize: bool = False) -> str:
        """Render one entry as a single console line."""
        moment = datetime.fromtimestamp(entry.timestamp_ns / 1_000_000_000)
        line = f"{moment:%H:%M:%S}.{moment.microsecond // 1000:03d} [{entry.level.value:<8}] ({entry.source.value}) {entry.message}"

        if colorize:
            return f"{_COLORS[entry.level]}{line}{_RESET}"
        return line

    def write(self, entry: LogEntry) -> None:
        stream = self.stream
        colorize = self._colorize if self._colorize is not None else _isatty(stream)

        with self._lock:
            stream.write(self.format(entry, colorize) + "\n")
            stream.flush()


def _isatty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False
