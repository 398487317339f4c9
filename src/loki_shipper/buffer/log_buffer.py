"""Thread-safe log buffer with drain-on-threshold semantics.

This module holds the single piece of shared mutable state in the shipper.
Every mutation (append, size check, drain) happens under one reentrant lock, and a
threshold drain happens in the same critical section as the append that
reached it, so the buffer never grows past the batch size.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from ..core.entries import LogEntry


@dataclass
class BufferConfig:
    """Configuration for the log buffer."""

    batch_size: int = 10  # Drain as soon as this many entries are buffered
    flush_interval: float = 5.0  # Seconds between timer-driven flushes


class LogBuffer:
    """Ordered in-memory buffer of log entries shared by all producers."""

    def __init__(self, config: Optional[BufferConfig] = None):
        """Initialize the log buffer.

        Args:
            config: Buffer configuration (defaults when None)
        """
        self.config = config or BufferConfig()
        self._entries: List[LogEntry] = []
        # Reentrant: a signal handler may flush while the main thread holds it
        self._lock = threading.RLock()

        # Statistics
        self._total_appended = 0
        self._total_drained = 0
        self._total_threshold_drains = 0

    def append(self, entry: LogEntry) -> List[LogEntry]:
        """Append an entry, draining the buffer if the batch size is reached.

        Args:
            entry: Entry to append

        Returns:
            The drained entries when the threshold was reached, else an empty list
        """
        with self._lock:
            self._entries.append(entry)
            self._total_appended += 1

            if len(self._entries) < self.config.batch_size:
                return []

            self._total_threshold_drains += 1
            return self._drain_locked()

    def drain(self) -> List[LogEntry]:
        """Remove and return every buffered entry in insertion order."""
        with self._lock:
            return self._drain_locked()

    def size(self) -> int:
        """Return the current buffer size."""
        with self._lock:
            return len(self._entries)

    def is_empty(self) -> bool:
        """Check if the buffer is empty."""
        with self._lock:
            return len(self._entries) == 0

    def get_stats(self) -> Dict[str, Any]:
        """Get buffer statistics."""
        with self._lock:
            return {
                "current_size": len(self._entries),
                "batch_size": self.config.batch_size,
                "total_appended": self._total_appended,
                "total_drained": self._total_drained,
                "total_threshold_drains": self._total_threshold_drains,
            }

    def _drain_locked(self) -> List[LogEntry]:
        """Swap out the entry list. Must be called with the lock held."""
        entries = self._entries
        self._entries = []
        self._total_drained += len(entries)

        if entries:
            logger.debug(f"Drained {len(entries)} entries from buffer")

        return entries
