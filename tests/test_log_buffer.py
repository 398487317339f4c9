"""Tests for the thread-safe log buffer."""

import threading

from loki_shipper.buffer import BufferConfig, LogBuffer
from loki_shipper.core import LogEntry, LogLevel


def _entry(i: int) -> LogEntry:
    return LogEntry(level=LogLevel.INFO, message=f"entry {i}")


def test_size_tracks_appends_below_threshold():
    buffer = LogBuffer(BufferConfig(batch_size=10))

    for i in range(9):
        assert buffer.append(_entry(i)) == []

    assert buffer.size() == 9


def test_reaching_threshold_drains_in_order():
    buffer = LogBuffer(BufferConfig(batch_size=3))

    assert buffer.append(_entry(0)) == []
    assert buffer.append(_entry(1)) == []
    drained = buffer.append(_entry(2))

    assert [entry.message for entry in drained] == ["entry 0", "entry 1", "entry 2"]
    assert buffer.is_empty()
    assert buffer.get_stats()["total_threshold_drains"] == 1


def test_drain_empty_buffer():
    buffer = LogBuffer()

    assert buffer.drain() == []
    assert buffer.get_stats()["total_drained"] == 0


def test_concurrent_appends_never_exceed_batch_size():
    buffer = LogBuffer(BufferConfig(batch_size=7))
    drained_batches = []
    batches_lock = threading.Lock()

    def produce():
        for i in range(200):
            drained = buffer.append(_entry(i))
            if drained:
                with batches_lock:
                    drained_batches.append(drained)

    threads = [threading.Thread(target=produce) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert all(len(batch) == 7 for batch in drained_batches)
    assert sum(len(batch) for batch in drained_batches) + buffer.size() == 1600
    assert buffer.size() < 7


def test_drain_while_lock_is_held_on_same_thread():
    buffer = LogBuffer(BufferConfig(batch_size=5))
    buffer.append(_entry(0))

    # An exit signal handler runs on the thread that may already hold the lock
    with buffer._lock:
        drained = buffer.drain()

    assert [entry.message for entry in drained] == ["entry 0"]


def test_default_configs_are_not_shared():
    first, second = LogBuffer(), LogBuffer()
    first.config.batch_size = 2

    assert second.config.batch_size == 10
