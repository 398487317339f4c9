"""Execution context the shipper is wired into by ``setup``.

A host provides two primitives: a periodic timer and a way to defer a call
to its next scheduling tick. ``ThreadingHost`` implements both with daemon
threads for processes that have no event loop of their own. Game loops and
other embedders can pass any object implementing the ``Host`` protocol.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, List, Optional, Protocol

from loguru import logger

Callback = Callable[[], None]


class Host(Protocol):
    """Scheduling primitives required by the shipper."""

    def schedule_periodic(self, interval: float, callback: Callback) -> None:
        """Run ``callback`` every ``interval`` seconds until ``stop``."""
        ...

    def call_soon(self, callback: Callback) -> None:
        """Run ``callback`` on the next scheduling tick, off the caller's stack."""
        ...

    def stop(self) -> None:
        """Cancel periodic callbacks and stop running deferred ones."""
        ...


class ThreadingHost:
    """Host backed by daemon threads."""

    def __init__(self, name: str = "loki-shipper"):
        self.name = name
        self._stop_event = threading.Event()
        self._timer_threads: List[threading.Thread] = []
        self._deferred: queue.SimpleQueue[Optional[Callback]] = queue.SimpleQueue()
        self._deferred_thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    def schedule_periodic(self, interval: float, callback: Callback) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")

        thread = threading.Thread(target=self._timer_loop, args=(interval, callback), name=f"{self.name}-timer", daemon=True)
        with self._lock:
            self._timer_threads.append(thread)
        thread.start()
        logger.debug(f"Scheduled periodic callback every {interval}s")

    def call_soon(self, callback: Callback) -> None:
        if self._stop_event.is_set():
            return

        with self._lock:
            if self._deferred_thread is None:
                self._deferred_thread = threading.Thread(target=self._deferred_loop, name=f"{self.name}-deferred", daemon=True)
                self._deferred_thread.start()

        self._deferred.put(callback)

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the timer and deferred threads, waiting up to ``timeout`` each."""
        self._stop_event.set()
        self._deferred.put(None)

        with self._lock:
            threads = list(self._timer_threads)
            if self._deferred_thread is not None:
                threads.append(self._deferred_thread)

        for thread in threads:
            if thread is not threading.current_thread():
                thread.join(timeout=timeout)

    def _timer_loop(self, interval: float, callback: Callback) -> None:
        # Event.wait returns True once stop() is called
        while not self._stop_event.wait(interval):
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in periodic callback: {e}")

    def _deferred_loop(self) -> None:
        while True:
            callback = self._deferred.get()
            if callback is None:
                break

            try:
                callback()
            except Exception as e:
                logger.error(f"Error in deferred callback: {e}")
