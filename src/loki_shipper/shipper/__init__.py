"""Log shipper facade, console echo and logging interception."""

from .console_echo import ConsoleEcho
from .interception import InterceptHandler, install_logging_handler, install_loguru_sink, level_from_number, loguru_sink
from .log_shipper import LogShipper, capture_backtrace, get_shipper, set_shipper

__all__ = [
    "LogShipper",
    "get_shipper",
    "set_shipper",
    "capture_backtrace",
    "ConsoleEcho",
    "InterceptHandler",
    "install_logging_handler",
    "install_loguru_sink",
    "level_from_number",
    "loguru_sink",
]
