"""Adapters that forward records from existing logging setups to the shipper.

Records emitted by loki_shipper's own modules are never forwarded, so the
shipper's diagnostics cannot loop back into the buffer.
"""

from __future__ import annotations

import logging
import traceback
from typing import Any, Callable, Dict, Optional

from loguru import logger

from ..core.entries import LogLevel, LogSource
from .log_shipper import LogShipper

_OWN_PACKAGE = __name__.split(".")[0]


def level_from_number(levelno: int) -> LogLevel:
    """Map a numeric level (stdlib and loguru share the scale) to a LogLevel."""
    if levelno >= logging.CRITICAL:
        return LogLevel.CRITICAL
    if levelno >= logging.ERROR:
        return LogLevel.ERROR
    if levelno >= logging.WARNING:
        return LogLevel.WARN
    if levelno >= logging.INFO:
        return LogLevel.INFO
    return LogLevel.DEBUG


def is_own_record(name: Optional[str]) -> bool:
    """Whether a logger name belongs to this package."""
    return bool(name) and (name == _OWN_PACKAGE or name.startswith(_OWN_PACKAGE + "."))


def _scalar(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class InterceptHandler(logging.Handler):
    """Standard library logging handler that ships records."""

    def __init__(self, shipper: LogShipper, level: int = logging.NOTSET, source: LogSource = LogSource.ENGINE):
        super().__init__(level)
        self.shipper = shipper
        self.source = source

    def emit(self, record: logging.LogRecord) -> None:
        if is_own_record(record.name):
            return

        try:
            context: Dict[str, Any] = {
                "logger": record.name,
                "file": record.pathname,
                "line": record.lineno,
                "function": record.funcName,
            }
            if record.exc_info:
                context["backtrace"] = "".join(traceback.format_exception(*record.exc_info)).rstrip()

            self.shipper.log(level_from_number(record.levelno), record.getMessage(), context, source=self.source)
        except Exception:
            self.handleError(record)


def loguru_sink(shipper: LogShipper, source: LogSource = LogSource.ENGINE) -> Callable[[Any], None]:
    """Build a loguru sink that ships each message's record.

    Args:
        shipper: Shipper receiving the entries
        source: Source tag for forwarded entries

    Returns:
        Callable usable as ``logger.add(sink)``
    """

    def sink(message: Any) -> None:
        record = message.record
        if is_own_record(record["name"]):
            return

        context: Dict[str, Any] = {
            "logger": record["name"],
            "file": record["file"].path,
            "line": record["line"],
            "function": record["function"],
        }
        for key, value in record["extra"].items():
            context.setdefault(key, _scalar(value))

        exception = record["exception"]
        if exception is not None and exception.type is not None:
            context["backtrace"] = "".join(traceback.format_exception(exception.type, exception.value, exception.traceback)).rstrip()

        shipper.log(level_from_number(record["level"].no), record["message"], context, source=source)

    return sink


def install_loguru_sink(shipper: LogShipper, level: str = "DEBUG", source: LogSource = LogSource.ENGINE) -> int:
    """Add a shipping sink to the global loguru logger.

    Args:
        shipper: Shipper receiving the entries
        level: Minimum loguru level forwarded
        source: Source tag for forwarded entries

    Returns:
        The loguru handler id, usable with ``logger.remove``
    """
    return logger.add(loguru_sink(shipper, source), level=level, format="{message}", filter=lambda record: not is_own_record(record["name"]))


def install_logging_handler(shipper: LogShipper, logger_name: Optional[str] = None, level: int = logging.NOTSET) -> InterceptHandler:
    """Attach an InterceptHandler to a stdlib logger (the root logger by default)."""
    handler = InterceptHandler(shipper, level=level)
    logging.getLogger(logger_name).addHandler(handler)
    return handler
