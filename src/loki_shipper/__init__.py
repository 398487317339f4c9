"""loki-shipper - batch structured game logs and push them to Loki."""

from ._version import __version__
from .config import ShipperConfig, get_config_manager, setup_logging
from .core import ConfigurationError, ErrorType, LogEntry, LogLevel, LogSource, get_session_id
from .host import Host, ThreadingHost
from .lifecycle import LifecycleEvent, install_shutdown_hooks
from .shipper import LogShipper, get_shipper, install_logging_handler, install_loguru_sink, set_shipper

__all__ = [
    "__version__",
    "LogShipper",
    "ShipperConfig",
    "LogEntry",
    "LogLevel",
    "LogSource",
    "ErrorType",
    "LifecycleEvent",
    "Host",
    "ThreadingHost",
    "ConfigurationError",
    "get_config_manager",
    "get_session_id",
    "get_shipper",
    "set_shipper",
    "setup_logging",
    "install_shutdown_hooks",
    "install_logging_handler",
    "install_loguru_sink",
]
