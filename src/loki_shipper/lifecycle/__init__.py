"""Lifecycle hooks that drain the shipper before teardown."""

from .events import LifecycleEvent
from .signal_handler import SignalHandler, install_shutdown_hooks

__all__ = ["LifecycleEvent", "SignalHandler", "install_shutdown_hooks"]
