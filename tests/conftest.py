"""Shared fixtures for loki-shipper tests."""

from __future__ import annotations

from typing import Callable, List, Tuple

import pytest

from loki_shipper.config import ShipperConfig
from loki_shipper.core.entries import Stream
from loki_shipper.shipper import LogShipper

ENV_VARS = [
    "LOKI_URL",
    "LOKI_USERNAME",
    "LOKI_PASSWORD",
    "LOKI_BATCH_SIZE",
    "LOKI_FLUSH_INTERVAL",
    "LOKI_APP_LABEL",
    "LOKI_DEBUG",
    "LOKI_MIN_LEVEL",
    "LOKI_CONSOLE_ECHO",
    "LOKI_LOG_LEVEL",
    "LOKI_LOG_FILE",
]


class ManualHost:
    """Host whose timer only fires when the test calls ``tick``."""

    def __init__(self):
        self.periodic: List[Tuple[float, Callable[[], None]]] = []
        self.deferred: List[Callable[[], None]] = []
        self.stopped = False

    def schedule_periodic(self, interval, callback):
        self.periodic.append((interval, callback))

    def call_soon(self, callback):
        self.deferred.append(callback)

    def stop(self):
        self.stopped = True

    def tick(self):
        for _, callback in self.periodic:
            callback()

    def run_deferred(self):
        pending, self.deferred = self.deferred, []
        for callback in pending:
            callback()


class RecordingSender:
    """Sender double that records every push instead of sending it."""

    def __init__(self):
        self.pushes: List[List[Stream]] = []
        self.closed = False

    def send_streams(self, streams):
        if streams:
            self.pushes.append(streams)
        return None

    def get_stats(self):
        return {"total_pushes_sent": len(self.pushes)}

    def close(self, wait=True):
        self.closed = True


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    return ShipperConfig(app_label="test-game", batch_size=10, flush_interval=5.0)


@pytest.fixture
def host():
    return ManualHost()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def shipper(config, sender, host):
    shipper = LogShipper(config, sender=sender, session_id="test-session")
    shipper.setup(host)
    yield shipper
    shipper.shutdown()
