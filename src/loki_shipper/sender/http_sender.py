"""HTTP sender for pushing log streams to a Loki-compatible endpoint.

This module provides fire-and-forget transport: each push is submitted to a
small worker pool and ``send_streams`` returns right away. The completion
callback only reports failures on the local diagnostic channel. There is no
retry and no re-queue, so delivery is best-effort.
"""

from __future__ import annotations

import base64
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from loguru import logger

from .._version import __version__
from ..core.entries import Stream
from .models import PushRequest


@dataclass
class SenderConfig:
    """Configuration for the HTTP sender."""

    endpoint: str = "http://localhost:3100/loki/api/v1/push"  # Loki push endpoint

    # Authentication
    username: str = ""  # Basic auth user (empty = no Authorization header)
    password: str = ""  # Basic auth password

    # HTTP settings
    timeout_seconds: float = 10.0  # Request timeout
    max_workers: int = 1  # In-flight pushes; above 1 pushes may reach Loki out of drain order
    extra_headers: Dict[str, str] = field(default_factory=dict)  # Added to every push
    user_agent: str = f"loki-shipper/{__version__}"


def basic_auth_header(username: str, password: str) -> str:
    """Build an ``Authorization`` header value for HTTP basic auth."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class HTTPSender:
    """Non-blocking HTTP sender for log streams."""

    def __init__(self, config: Optional[SenderConfig] = None):
        """Initialize the HTTP sender.

        Args:
            config: Sender configuration (defaults when None)
        """
        self.config = config or SenderConfig()
        self._executor = ThreadPoolExecutor(max_workers=max(1, self.config.max_workers), thread_name_prefix="loki-push")
        self._stats_lock = threading.RLock()
        self._closed = False

        # Statistics
        self._total_pushes_sent = 0
        self._total_pushes_failed = 0
        self._total_entries_sent = 0
        self._total_send_time = 0.0
        self._last_successful_send: Optional[datetime] = None
        self._last_error: Optional[str] = None

    def build_headers(self) -> Dict[str, str]:
        """Build the headers sent with every push."""
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
        }
        headers.update(self.config.extra_headers)

        if self.config.username or self.config.password:
            headers["Authorization"] = basic_auth_header(self.config.username, self.config.password)

        return headers

    def send_streams(self, streams: List[Stream]) -> Optional[Future]:
        """Push streams to the endpoint without waiting for the response.

        Args:
            streams: Streams built by a flush

        Returns:
            Future resolving to ``(status, reason)``, or None if nothing was submitted
        """
        if not streams:
            return None

        if self._closed:
            logger.warning("Sender is closed, dropping push")
            return None

        try:
            payload = PushRequest.from_streams(streams)
            body = payload.to_json_bytes()
        except Exception as e:
            # Non-serializable context values are a caller contract violation
            self._record_failure(f"Failed to encode push: {e}")
            return None

        entry_count = payload.entry_count()
        started_at = time.time()

        try:
            future = self._executor.submit(self._post, body)
        except RuntimeError as e:
            # Worker pool is gone (interpreter exit runs atexit hooks after it), post inline
            logger.debug(f"Worker pool unavailable ({e}), pushing {entry_count} entries inline")
            future = self._post_inline(body)

        future.add_done_callback(lambda f: self._on_complete(f, entry_count, started_at))
        return future

    def get_stats(self) -> Dict[str, Any]:
        """Get sender statistics.

        Returns:
            Dictionary with sender statistics
        """
        with self._stats_lock:
            total = self._total_pushes_sent + self._total_pushes_failed
            return {
                "total_pushes_sent": self._total_pushes_sent,
                "total_pushes_failed": self._total_pushes_failed,
                "total_entries_sent": self._total_entries_sent,
                "success_rate": self._total_pushes_sent / max(1, total),
                "average_send_time_seconds": self._total_send_time / max(1, total),
                "last_successful_send": self._last_successful_send.isoformat() if self._last_successful_send else None,
                "last_error": self._last_error,
            }

    def close(self, wait: bool = True) -> None:
        """Stop accepting pushes and optionally wait for in-flight ones."""
        self._closed = True
        self._executor.shutdown(wait=wait)

    def _post_inline(self, body: bytes) -> Future:
        """Issue a POST on the calling thread, wrapped in a completed future."""
        future: Future = Future()
        try:
            future.set_result(self._post(body))
        except Exception as e:
            future.set_exception(e)
        return future

    def _post(self, body: bytes) -> Tuple[int, str]:
        """Issue a single POST. Runs on a worker thread.

        Args:
            body: Encoded push body

        Returns:
            Tuple of (status, reason)
        """
        req = Request(self.config.endpoint, data=body, headers=self.build_headers(), method="POST")

        try:
            with urlopen(req, timeout=self.config.timeout_seconds) as response:
                return response.status, response.reason or ""
        except HTTPError as e:
            # urllib raises for 4xx/5xx, report it as a status instead
            return e.code, str(e.reason)

    def _on_complete(self, future: Future, entry_count: int, started_at: float) -> None:
        """Inspect a finished push and report failures locally."""
        send_time = time.time() - started_at

        try:
            status, reason = future.result()
        except URLError as e:
            self._record_failure(f"Network error pushing {entry_count} entries: {e.reason}", send_time)
            return
        except Exception as e:
            self._record_failure(f"Push of {entry_count} entries failed: {e}", send_time)
            return

        if status >= 400:
            self._record_failure(f"Push of {entry_count} entries rejected: HTTP {status} {reason}", send_time)
            return

        with self._stats_lock:
            self._total_pushes_sent += 1
            self._total_entries_sent += entry_count
            self._total_send_time += send_time
            self._last_successful_send = datetime.now()
            self._last_error = None

        logger.debug(f"Pushed {entry_count} entries in {send_time:.2f}s (HTTP {status})")

    def _record_failure(self, error_msg: str, send_time: float = 0.0) -> None:
        with self._stats_lock:
            self._total_pushes_failed += 1
            self._total_send_time += send_time
            self._last_error = error_msg

        logger.error(error_msg)


def create_default_sender(endpoint: str, username: str = "", password: str = "") -> HTTPSender:
    """Create an HTTP sender with default configuration.

    Args:
        endpoint: Loki push endpoint URL
        username: Optional basic auth user
        password: Optional basic auth password

    Returns:
        Configured HTTP sender
    """
    config = SenderConfig(endpoint=endpoint, username=username, password=password)

    return HTTPSender(config)
