"""Log entry models for the loki-shipper pipeline.

This module defines the structures that flow through the shipper:
Ingestion → Buffer → Streams → Sender → Loki
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional

_SEVERITY = {"DEBUG": 0, "INFO": 1, "WARN": 2, "ERROR": 3, "CRITICAL": 4}


class LogLevel(str, Enum):
    """Severity of a log entry, ordered from DEBUG to CRITICAL."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def severity(self) -> int:
        return _SEVERITY[self.value]

    # str ordering would compare names alphabetically
    def __lt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity < other.severity

    def __le__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity <= other.severity

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity > other.severity

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, LogLevel):
            return NotImplemented
        return self.severity >= other.severity

    @classmethod
    def parse(cls, value: str) -> LogLevel:
        """Parse a level name, accepting ``WARNING`` as an alias of ``WARN``."""
        name = value.strip().upper()
        if name == "WARNING":
            name = "WARN"
        return cls(name)


class LogSource(str, Enum):
    """Where an entry originated."""

    APP = "app"
    PRINT = "print"
    ENGINE = "engine"


class ErrorType(str, Enum):
    """Kind of error reported by a host runtime."""

    ERROR = "error"
    WARNING = "warning"
    SCRIPT = "script"
    SHADER = "shader"

    @property
    def level(self) -> LogLevel:
        return LogLevel.WARN if self is ErrorType.WARNING else LogLevel.ERROR


@dataclass(frozen=True)
class LogEntry:
    """One observed event. Immutable once created."""

    level: LogLevel
    message: str
    source: LogSource = LogSource.APP
    timestamp_ns: int = field(default_factory=time.time_ns)
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Freeze the context so callers cannot mutate an enqueued entry."""
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to the dictionary shipped as a log line (no timestamp)."""
        data: Dict[str, Any] = {"level": self.level.value, "message": self.message, "source": self.source.value}
        for key, value in self.context.items():
            # Core fields win over colliding context keys
            data.setdefault(key, value)
        return data

    def to_line(self) -> str:
        """JSON-encode the entry for the ``values`` pair."""
        return json.dumps(self.to_dict(), ensure_ascii=False)

    def to_value(self) -> List[str]:
        """Render the ``[timestamp, line]`` pair used in a Loki stream."""
        return [str(self.timestamp_ns), self.to_line()]


@dataclass
class Stream:
    """Entries of a single level grouped under one label set at flush time."""

    labels: Dict[str, str]
    entries: List[LogEntry] = field(default_factory=list)

    @property
    def level(self) -> str:
        return self.labels["level"]

    def add_entry(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def size(self) -> int:
        """Return the number of entries in this stream."""
        return len(self.entries)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the stream to its push payload form."""
        return {"stream": dict(self.labels), "values": [entry.to_value() for entry in self.entries]}


def stream_labels(app: str, session_id: str, debug: bool, level: LogLevel) -> Dict[str, str]:
    """Build the label set attached to every stream."""
    return {
        "app": app,
        "session_id": session_id,
        "debug": "true" if debug else "false",
        "level": level.value,
    }


def group_by_level(entries: Iterable[LogEntry], app: str, session_id: str, debug: bool = False) -> List[Stream]:
    """Group entries into one stream per level.

    Streams come out in order of first appearance of their level, and each
    stream keeps its entries in their original relative order.

    Args:
        entries: Buffered entries in insertion order
        app: Value of the ``app`` label
        session_id: Value of the ``session_id`` label
        debug: Value of the ``debug`` label

    Returns:
        List of streams, empty when there are no entries
    """
    streams: Dict[LogLevel, Stream] = {}
    for entry in entries:
        stream: Optional[Stream] = streams.get(entry.level)
        if stream is None:
            stream = Stream(labels=stream_labels(app, session_id, debug, entry.level))
            streams[entry.level] = stream
        stream.add_entry(entry)
    return list(streams.values())
