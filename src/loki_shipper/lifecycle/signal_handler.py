from __future__ import annotations

import atexit
import signal
import sys
from types import FrameType
from typing import Any, Callable, Dict

from loguru import logger

from .events import LifecycleEvent

# Type alias for handler callbacks
CleanupFn = Callable[[], None]


class SignalHandler:
    """Install exit-related signal handlers and run cleanups before exiting."""

    #: Exit signals we hook where the platform has them
    _BASE_SIGNALS = [sig for sig in (getattr(signal, name, None) for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGBREAK")) if sig is not None]

    def __init__(self, install: bool = True) -> None:
        self._cleanup_fns: list[CleanupFn] = []
        self._previous: Dict[int, Any] = {}
        self.signal_received = False
        self.received_signal = None
        if install:
            self._install_handlers()

    def register_cleanup(self, fn: CleanupFn) -> None:
        self._cleanup_fns.append(fn)

    def run_cleanups(self) -> None:
        for fn in self._cleanup_fns:
            try:
                fn()
            except Exception:  # noqa: BLE001
                logger.exception(f"Cleanup function {fn} raised")

    def restore(self) -> None:
        """Put back the handlers that were installed before this one."""
        for sig, previous in self._previous.items():
            try:
                signal.signal(sig, previous)
            except (ValueError, OSError, TypeError):
                logger.warning(f"Could not restore handler for signal {sig}")
        self._previous.clear()

    def _install_handlers(self) -> None:
        for sig in self._BASE_SIGNALS:
            try:
                self._previous[sig] = signal.getsignal(sig)
                signal.signal(sig, self._handle_exit)  # type: ignore[arg-type]
            except (ValueError, OSError):  # not allowed in threads / rare OSes
                self._previous.pop(sig, None)
                logger.warning(f"Could not hook signal {sig}")

    def _handle_exit(self, signum: int, frame: FrameType | None) -> None:  # noqa: ANN001
        if self.signal_received:
            sys.exit(0)
        signal_name = signal.Signals(signum).name
        logger.info(f"Received {signal_name}, flushing logs before exit")
        self.signal_received = True
        self.received_signal = signal_name

        self.run_cleanups()

        sys.exit(0)

    def is_signal_received(self) -> bool:
        return self.signal_received


def install_shutdown_hooks(shipper, install_signals: bool = True) -> SignalHandler:
    """Flush and shut the shipper down on interpreter exit and exit signals.

    Args:
        shipper: LogShipper to drain on exit
        install_signals: Also hook SIGINT/SIGTERM/SIGHUP (main thread only)

    Returns:
        The installed signal handler
    """
    handler = SignalHandler(install=install_signals)
    handler.register_cleanup(lambda: shipper.handle_lifecycle_event(LifecycleEvent.CLOSE_REQUEST))
    handler.register_cleanup(shipper.shutdown)

    atexit.register(shipper.shutdown)
    return handler
