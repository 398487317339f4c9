"""Tests for configuration loading and validation."""

import sys
from pathlib import Path

import pytest
from loguru import logger

from loki_shipper.config import ConfigManager, ShipperConfig, get_config_manager, setup_logging
from loki_shipper.core import LogLevel


def test_defaults():
    config = ShipperConfig()

    assert config.endpoint == "http://localhost:3100/loki/api/v1/push"
    assert config.batch_size == 10
    assert config.flush_interval == 5.0
    assert config.console_echo is False
    assert config.validate() == (True, [])


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("LOKI_URL", "https://logs.example.com/loki/api/v1/push")
    monkeypatch.setenv("LOKI_BATCH_SIZE", "25")
    monkeypatch.setenv("LOKI_FLUSH_INTERVAL", "2.5")
    monkeypatch.setenv("LOKI_APP_LABEL", "space-game")
    monkeypatch.setenv("LOKI_CONSOLE_ECHO", "yes")
    monkeypatch.setenv("LOKI_DEBUG", "1")
    monkeypatch.setenv("LOKI_USERNAME", "grafana")
    monkeypatch.setenv("LOKI_PASSWORD", "s3cret")
    monkeypatch.setenv("LOKI_MIN_LEVEL", "warning")
    monkeypatch.setenv("LOKI_LOG_FILE", "/tmp/loki-shipper.log")

    config = ShipperConfig()

    assert config.endpoint == "https://logs.example.com/loki/api/v1/push"
    assert config.batch_size == 25
    assert config.flush_interval == 2.5
    assert config.app_label == "space-game"
    assert config.console_echo is True
    assert config.debug is True
    assert config.min_level is LogLevel.WARN
    assert config.log_file == Path("/tmp/loki-shipper.log")
    assert config.get_sender_config()["username"] == "grafana"


def test_invalid_env_overrides_are_ignored(monkeypatch):
    monkeypatch.setenv("LOKI_BATCH_SIZE", "lots")
    monkeypatch.setenv("LOKI_FLUSH_INTERVAL", "soon")
    monkeypatch.setenv("LOKI_CONSOLE_ECHO", "maybe")
    monkeypatch.setenv("LOKI_MIN_LEVEL", "loud")

    config = ShipperConfig()

    assert config.batch_size == 10
    assert config.flush_interval == 5.0
    assert config.console_echo is False
    assert config.min_level is LogLevel.DEBUG


def test_validate_reports_every_problem():
    config = ShipperConfig(endpoint="loki:3100", app_label="", batch_size=0, flush_interval=0, password="orphan")

    is_valid, errors = config.validate()

    assert not is_valid
    assert "Endpoint URL must use http or https" in errors
    assert "App label is required" in errors
    assert "Batch size must be positive" in errors
    assert "Flush interval must be positive" in errors
    assert "Password given without a username" in errors


def test_config_manager_overrides():
    manager = ConfigManager()
    assert manager.validate_config() == (False, ["No configuration loaded"])

    config = manager.load_config(app_label="racer", batch_size=50, endpoint=None)

    assert config.app_label == "racer"
    assert config.batch_size == 50
    assert config.endpoint == "http://localhost:3100/loki/api/v1/push"
    assert manager.get_config() is config
    assert manager.validate_config() == (True, [])

    with pytest.raises(TypeError):
        manager.load_config(not_an_option=1)


def test_projections():
    config = ShipperConfig(batch_size=3, flush_interval=1.0, extra_headers={"X-Scope-OrgID": "a"})

    assert config.get_buffer_config() == {"batch_size": 3, "flush_interval": 1.0}
    sender_config = config.get_sender_config()
    assert sender_config["extra_headers"] == {"X-Scope-OrgID": "a"}
    assert sender_config["extra_headers"] is not config.extra_headers


def test_global_config_manager():
    assert get_config_manager() is get_config_manager()


def test_setup_logging_writes_diagnostics_to_file(tmp_path):
    log_file = tmp_path / "shipper.log"
    config = ShipperConfig(log_to_console=False, log_file=log_file, log_level="DEBUG")

    try:
        setup_logging(config)
        logger.warning("diagnostic line")
        logger.complete()
    finally:
        logger.remove()
        logger.add(sys.stderr)

    assert "diagnostic line" in log_file.read_text()
