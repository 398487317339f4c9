"""Tests for the fire-and-forget HTTP sender."""

import base64
import json
from urllib.error import HTTPError, URLError

import pytest

from loki_shipper.core import LogEntry, LogLevel, group_by_level
from loki_shipper.sender import HTTPSender, SenderConfig, basic_auth_header, create_default_sender
from loki_shipper.sender import http_sender as http_sender_module


class FakeResponse:
    def __init__(self, status=204, reason="No Content"):
        self.status = status
        self.reason = reason

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeUrlopen:
    """Records requests and answers with a canned response or error."""

    def __init__(self, response=None, error=None):
        self.response = response or FakeResponse()
        self.error = error
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append((req, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def _streams(*levels, context=None):
    entries = [LogEntry(level=level, message=f"{level.value} message", context=context or {}) for level in levels]
    return group_by_level(entries, app="test-game", session_id="s1")


@pytest.fixture
def fake_urlopen(monkeypatch):
    fake = FakeUrlopen()
    monkeypatch.setattr(http_sender_module, "urlopen", fake)
    return fake


def test_push_posts_wire_format(fake_urlopen):
    sender = HTTPSender(SenderConfig(endpoint="http://loki:3100/loki/api/v1/push", timeout_seconds=3.0))

    future = sender.send_streams(_streams(LogLevel.INFO, LogLevel.ERROR, LogLevel.INFO))
    assert future.result() == (204, "No Content")
    sender.close()

    req, timeout = fake_urlopen.requests[0]
    assert req.full_url == "http://loki:3100/loki/api/v1/push"
    assert req.get_method() == "POST"
    assert req.get_header("Content-type") == "application/json"
    assert timeout == 3.0

    body = json.loads(req.data)
    assert [stream["stream"]["level"] for stream in body["streams"]] == ["INFO", "ERROR"]
    assert len(body["streams"][0]["values"]) == 2

    stats = sender.get_stats()
    assert stats["total_pushes_sent"] == 1
    assert stats["total_entries_sent"] == 3
    assert stats["last_error"] is None


def test_basic_auth_and_extra_headers(fake_urlopen):
    sender = HTTPSender(SenderConfig(username="grafana", password="s3cret", extra_headers={"X-Scope-OrgID": "team-a"}))

    sender.send_streams(_streams(LogLevel.WARN)).result()
    sender.close()

    req, _ = fake_urlopen.requests[0]
    expected = "Basic " + base64.b64encode(b"grafana:s3cret").decode("ascii")
    assert req.get_header("Authorization") == expected
    assert req.get_header("X-scope-orgid") == "team-a"
    assert basic_auth_header("grafana", "s3cret") == expected


def test_no_authorization_without_credentials():
    sender = HTTPSender(SenderConfig())
    try:
        assert "Authorization" not in sender.build_headers()
    finally:
        sender.close()


def test_http_error_is_reported_not_raised(monkeypatch):
    error = HTTPError("http://localhost:3100/loki/api/v1/push", 500, "Internal Server Error", {}, None)
    monkeypatch.setattr(http_sender_module, "urlopen", FakeUrlopen(error=error))
    sender = HTTPSender(SenderConfig())

    future = sender.send_streams(_streams(LogLevel.ERROR))
    assert future.result()[0] == 500
    sender.close()

    stats = sender.get_stats()
    assert stats["total_pushes_sent"] == 0
    assert stats["total_pushes_failed"] == 1
    assert "HTTP 500" in stats["last_error"]


def test_network_error_is_reported_not_raised(monkeypatch):
    monkeypatch.setattr(http_sender_module, "urlopen", FakeUrlopen(error=URLError("connection refused")))
    sender = HTTPSender(SenderConfig())

    sender.send_streams(_streams(LogLevel.INFO))
    sender.close()

    stats = sender.get_stats()
    assert stats["total_pushes_failed"] == 1
    assert "connection refused" in stats["last_error"]


def test_empty_push_is_not_sent(fake_urlopen):
    sender = HTTPSender(SenderConfig())

    assert sender.send_streams([]) is None
    sender.close()

    assert fake_urlopen.requests == []


def test_unserializable_context_abandons_push(fake_urlopen):
    sender = HTTPSender(SenderConfig())

    assert sender.send_streams(_streams(LogLevel.INFO, context={"node": object()})) is None
    sender.close()

    assert fake_urlopen.requests == []
    assert sender.get_stats()["total_pushes_failed"] == 1


def test_closed_sender_drops_push(fake_urlopen):
    sender = HTTPSender(SenderConfig())
    sender.close()

    assert sender.send_streams(_streams(LogLevel.INFO)) is None
    assert fake_urlopen.requests == []


def test_create_default_sender(fake_urlopen):
    sender = create_default_sender("http://loki:3100/loki/api/v1/push", username="u", password="p")

    sender.send_streams(_streams(LogLevel.DEBUG)).result()
    sender.close()

    req, _ = fake_urlopen.requests[0]
    assert req.full_url == "http://loki:3100/loki/api/v1/push"
    assert req.get_header("Authorization") == basic_auth_header("u", "p")


def test_push_is_sent_inline_when_pool_refuses_work(fake_urlopen, monkeypatch):
    sender = HTTPSender(SenderConfig())

    def refuse(*args, **kwargs):
        raise RuntimeError("cannot schedule new futures after interpreter shutdown")

    monkeypatch.setattr(sender._executor, "submit", refuse)

    future = sender.send_streams(_streams(LogLevel.INFO, LogLevel.WARN))
    assert future.result() == (204, "No Content")
    sender.close()

    assert len(fake_urlopen.requests) == 1
    stats = sender.get_stats()
    assert stats["total_pushes_sent"] == 1
    assert stats["total_entries_sent"] == 2


def test_defaults_to_a_single_push_worker():
    first, second = HTTPSender(), HTTPSender()
    try:
        assert first.config.max_workers == 1
        assert first._executor._max_workers == 1
        assert first.config is not second.config
    finally:
        first.close()
        second.close()
