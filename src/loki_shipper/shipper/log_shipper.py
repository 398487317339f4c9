"""Batching log shipper coordinating ingestion, buffering and transport.

This module coordinates the whole flow:
Producers → LogShipper → LogBuffer → Streams → HTTPSender → Loki

Ingestion calls never raise and never wait on the network. Entries are
drained from the buffer before the push is issued, so delivery is
at-most-once: a failed push is reported locally and its entries are gone.
"""

from __future__ import annotations

import os
import threading
import traceback
from datetime import datetime
from functools import partial
from typing import Any, Dict, List, Mapping, Optional, Union

from loguru import logger

from ..buffer import BufferConfig, LogBuffer
from ..config import ShipperConfig
from ..core.entries import ErrorType, LogEntry, LogLevel, LogSource, group_by_level
from ..core.errors import ConfigurationError
from ..core.session import get_session_id
from ..host import Host, ThreadingHost
from ..lifecycle.events import LifecycleEvent
from ..sender import HTTPSender, SenderConfig
from .console_echo import ConsoleEcho

Context = Optional[Mapping[str, Any]]

_PACKAGE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__))) + os.sep


def capture_backtrace() -> str:
    """Format the caller's stack, leaving out frames inside this package."""
    frames = [frame for frame in traceback.extract_stack() if not os.path.abspath(frame.filename).startswith(_PACKAGE_DIR)]
    return "".join(traceback.format_list(frames)).rstrip()


class LogShipper:
    """Accepts log entries from any thread and ships them to Loki in batches."""

    def __init__(
        self,
        config: Optional[ShipperConfig] = None,
        sender: Optional[HTTPSender] = None,
        session_id: Optional[str] = None,
        echo: Optional[ConsoleEcho] = None,
    ):
        """Initialize the shipper. Nothing is sent until ``setup`` is called.

        Args:
            config: Shipper configuration (defaults plus environment overrides when None)
            sender: Transport to use instead of building one from the config
            session_id: Session label, defaults to the process session id
            echo: Console mirror used when ``console_echo`` is enabled
        """
        self.config = config or ShipperConfig()
        self.session_id = session_id or get_session_id()
        self.buffer = LogBuffer(BufferConfig(**self.config.get_buffer_config()))
        self.sender = sender
        self.echo = echo or ConsoleEcho()
        self.host: Optional[Host] = None

        self._ready = False
        # Reentrant so an exit signal landing mid-call can still flush
        self._state_lock = threading.RLock()
        self._stats_lock = threading.RLock()
        # Serializes drain-to-submit so pushes leave in drain order
        self._flush_lock = threading.RLock()

        # Statistics
        self._created_at = datetime.now()
        self._total_flushes = 0
        self._total_entries_flushed = 0
        self._total_entries_dropped = 0
        self._total_ingest_errors = 0

    @property
    def is_ready(self) -> bool:
        return self._ready

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def setup(self, host: Optional[Host] = None) -> LogShipper:
        """Wire the transport and flush timer into a host execution context.

        Args:
            host: Scheduling context, a new ThreadingHost when None

        Returns:
            This shipper, for chaining

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        is_valid, errors = self.config.validate()
        if not is_valid:
            raise ConfigurationError(errors)

        with self._state_lock:
            if self._ready:
                logger.warning("Shipper is already set up")
                return self

            if self.sender is None:
                self.sender = HTTPSender(SenderConfig(**self.config.get_sender_config()))

            self.host = host or ThreadingHost()
            self.host.schedule_periodic(self.config.flush_interval, self._on_timer)
            self._ready = True

        logger.info(f"Shipper set up - App: {self.config.app_label}, Session: {self.session_id}, Endpoint: {self.config.endpoint}")
        return self

    def shutdown(self) -> None:
        """Stop the timer, flush what is buffered and wait for in-flight pushes."""
        with self._state_lock:
            if not self._ready:
                return
            # Detach first so late echoes are written directly, not queued on a stopped host
            host, self.host = self.host, None

        if host is not None:
            host.stop()

        self.flush()

        with self._state_lock:
            self._ready = False

        if self.sender is not None:
            self.sender.close(wait=True)

        stats = self.get_stats()["shipper"]
        logger.info(f"Shipper shut down. Stats - Flushes: {stats['total_flushes']}, Entries flushed: {stats['total_entries_flushed']}, Dropped: {stats['total_entries_dropped']}")

    def handle_lifecycle_event(self, kind: Union[LifecycleEvent, str]) -> bool:
        """React to a host lifecycle transition.

        Args:
            kind: The transition, as a LifecycleEvent or its value

        Returns:
            True if the transition triggered a flush
        """
        try:
            event = LifecycleEvent(kind)
        except ValueError:
            logger.warning(f"Unknown lifecycle event: {kind}")
            return False

        if not event.requires_flush:
            return False

        logger.debug(f"Flushing on lifecycle event {event.value}")
        self.flush()
        return True

    def __enter__(self) -> LogShipper:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def debug(self, message: str, context: Context = None) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: Context = None) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, context)

    def warn(self, message: str, context: Context = None) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, context)

    warning = warn

    def error(self, message: str, context: Context = None) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, self._with_backtrace(context))

    def critical(self, message: str, context: Context = None) -> Optional[LogEntry]:
        """Log a critical entry and flush immediately."""
        return self.log(LogLevel.CRITICAL, message, self._with_backtrace(context))

    def log(
        self,
        level: Union[LogLevel, str],
        message: str,
        context: Context = None,
        source: LogSource = LogSource.APP,
    ) -> Optional[LogEntry]:
        """Enqueue an entry. Never raises.

        Args:
            level: Entry severity
            message: Log message
            context: Extra fields merged into the shipped line
            source: Where the entry came from

        Returns:
            The enqueued entry, or None if it was filtered out or could not be built
        """
        try:
            if not isinstance(level, LogLevel):
                level = LogLevel.parse(level)

            if level < self.config.min_level:
                return None

            entry = LogEntry(level=level, message=str(message), source=LogSource(source), context=context or {})

            if self.config.console_echo:
                self._echo(entry)

            with self._flush_lock:
                drained = self.buffer.append(entry)
                if drained:
                    self._dispatch(drained)
                elif level is LogLevel.CRITICAL:
                    self._dispatch(self.buffer.drain())

            return entry

        except Exception as e:
            with self._stats_lock:
                self._total_ingest_errors += 1
            logger.error(f"Failed to ingest log entry: {e}")
            return None

    def intercept_message(self, message: str, is_error: bool = False) -> Optional[LogEntry]:
        """Record a line the host printed to its console.

        Args:
            message: Printed text, a trailing newline is stripped
            is_error: Whether it was printed to the error stream

        Returns:
            The enqueued entry, or None for blank lines
        """
        text = message.rstrip("\r\n")
        if not text.strip():
            return None

        return self.log(LogLevel.ERROR if is_error else LogLevel.INFO, text, source=LogSource.PRINT)

    def intercept_error(
        self,
        rationale: str,
        function: str = "",
        file: str = "",
        line: int = 0,
        code: str = "",
        error_type: Union[ErrorType, str] = ErrorType.ERROR,
        backtrace: Optional[str] = None,
    ) -> Optional[LogEntry]:
        """Record an error reported by the host runtime.

        Args:
            rationale: Human readable explanation, falls back to ``code`` when empty
            function: Function the error was raised in
            file: Source file of the error
            line: Source line of the error
            code: Failing expression or error code
            error_type: Kind of error, WARNING maps to WARN and the rest to ERROR
            backtrace: Host-provided backtrace text

        Returns:
            The enqueued entry
        """
        try:
            kind = ErrorType(error_type)
        except ValueError:
            kind = ErrorType.ERROR

        context: Dict[str, Any] = {
            "function": function,
            "file": file,
            "line": line,
            "code": code,
            "error_type": kind.value,
        }
        if backtrace:
            context["backtrace"] = backtrace

        return self.log(kind.level, rationale or code, context, source=LogSource.ENGINE)

    # ------------------------------------------------------------------
    # Flush
    # ------------------------------------------------------------------

    def flush(self) -> int:
        """Drain the buffer and hand its entries to the transport.

        Returns:
            Number of entries handed to the transport
        """
        with self._flush_lock:
            return self._dispatch(self.buffer.drain())

    def get_stats(self) -> Dict[str, Any]:
        """Get shipper, buffer and sender statistics."""
        stats: Dict[str, Any] = {
            "shipper": {
                "ready": self._ready,
                "session_id": self.session_id,
                "app": self.config.app_label,
                "uptime_seconds": (datetime.now() - self._created_at).total_seconds(),
                "total_flushes": self._total_flushes,
                "total_entries_flushed": self._total_entries_flushed,
                "total_entries_dropped": self._total_entries_dropped,
                "total_ingest_errors": self._total_ingest_errors,
            },
            "buffer": self.buffer.get_stats(),
        }

        if self.sender is not None:
            stats["sender"] = self.sender.get_stats()

        return stats

    def _dispatch(self, entries: List[LogEntry]) -> int:
        """Group drained entries and push them. Caller holds the flush lock."""
        if not entries:
            return 0

        if not self._ready or self.sender is None:
            # Not wired yet: drop rather than grow without bound
            with self._stats_lock:
                self._total_entries_dropped += len(entries)
            logger.debug(f"Shipper not set up, dropped {len(entries)} entries")
            return 0

        try:
            streams = group_by_level(entries, self.config.app_label, self.session_id, self.config.debug)
            self.sender.send_streams(streams)
        except Exception as e:
            with self._stats_lock:
                self._total_entries_dropped += len(entries)
            logger.error(f"Failed to flush {len(entries)} entries: {e}")
            return 0

        with self._stats_lock:
            self._total_flushes += 1
            self._total_entries_flushed += len(entries)
        return len(entries)

    def _on_timer(self) -> None:
        self.flush()

    def _echo(self, entry: LogEntry) -> None:
        host = self.host
        if host is not None:
            host.call_soon(partial(self.echo.write, entry))
        else:
            self.echo.write(entry)

    def _with_backtrace(self, context: Context) -> Context:
        try:
            merged = dict(context or {})
            if "backtrace" not in merged:
                merged["backtrace"] = capture_backtrace()
            return merged
        except Exception as e:
            logger.warning(f"Could not capture backtrace: {e}")
            return context


# Process-wide shipper instance
_shipper: Optional[LogShipper] = None
_shipper_lock = threading.Lock()


def get_shipper() -> LogShipper:
    """Get the process-wide shipper, creating an unconfigured one on first use."""
    global _shipper
    with _shipper_lock:
        if _shipper is None:
            _shipper = LogShipper()
        return _shipper


def set_shipper(shipper: Optional[LogShipper]) -> None:
    """Replace the process-wide shipper (None resets it)."""
    global _shipper
    with _shipper_lock:
        _shipper = shipper
