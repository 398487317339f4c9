"""Core loki-shipper data model: entries, streams and session identity."""

from .entries import ErrorType, LogEntry, LogLevel, LogSource, Stream, group_by_level, stream_labels
from .errors import ConfigurationError, LokiShipperError
from .session import get_session_id, new_session_id

__all__ = [
    # Entry model
    "LogEntry",
    "LogLevel",
    "LogSource",
    "ErrorType",
    "Stream",
    "group_by_level",
    "stream_labels",
    # Session identity
    "get_session_id",
    "new_session_id",
    # Errors
    "LokiShipperError",
    "ConfigurationError",
]
