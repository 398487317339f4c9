"""Configuration management for loki-shipper.

This module provides the shipper configuration with defaults suitable for a
local Loki instance, and allows environment variable overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from ..core.entries import LogLevel

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> Optional[bool]:
    value = value.strip().lower()
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    return None


@dataclass
class ShipperConfig:
    """Complete loki-shipper configuration."""

    # Transport settings
    endpoint: str = "http://localhost:3100/loki/api/v1/push"
    username: str = ""  # Basic auth (optional)
    password: str = ""
    extra_headers: Dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = 10.0
    max_workers: int = 1  # Keep at 1 so pushes leave in drain order

    # Buffer and flush policy
    batch_size: int = 10
    flush_interval: float = 5.0  # Seconds

    # Stream labels
    app_label: str = "game"
    debug: bool = False

    # Ingestion
    min_level: LogLevel = LogLevel.DEBUG  # Entries below this are not buffered
    console_echo: bool = False  # Mirror entries to stdout

    # Diagnostic logging (the shipper's own logs)
    log_level: str = "INFO"
    log_to_console: bool = True
    log_file: Optional[Path] = None
    log_rotation: str = "10 MB"
    log_retention: str = "7 days"

    def __post_init__(self):
        """Apply environment variable overrides."""
        self._apply_env_overrides()

    def _apply_env_overrides(self):
        """Apply configuration overrides from environment variables."""
        # Transport settings
        if endpoint := os.getenv("LOKI_URL"):
            self.endpoint = endpoint

        if username := os.getenv("LOKI_USERNAME"):
            self.username = username

        if password := os.getenv("LOKI_PASSWORD"):
            self.password = password

        # Buffer settings
        if batch_size := os.getenv("LOKI_BATCH_SIZE"):
            try:
                self.batch_size = int(batch_size)
            except ValueError:
                logger.warning(f"Invalid batch size: {batch_size}")

        if flush_interval := os.getenv("LOKI_FLUSH_INTERVAL"):
            try:
                self.flush_interval = float(flush_interval)
            except ValueError:
                logger.warning(f"Invalid flush interval: {flush_interval}")

        # Labels
        if app_label := os.getenv("LOKI_APP_LABEL"):
            self.app_label = app_label

        if debug := os.getenv("LOKI_DEBUG"):
            parsed = _parse_bool(debug)
            if parsed is None:
                logger.warning(f"Invalid debug flag: {debug}")
            else:
                self.debug = parsed

        # Ingestion
        if min_level := os.getenv("LOKI_MIN_LEVEL"):
            try:
                self.min_level = LogLevel.parse(min_level)
            except ValueError:
                logger.warning(f"Invalid minimum level: {min_level}")

        if console_echo := os.getenv("LOKI_CONSOLE_ECHO"):
            parsed = _parse_bool(console_echo)
            if parsed is None:
                logger.warning(f"Invalid console echo flag: {console_echo}")
            else:
                self.console_echo = parsed

        # Diagnostics
        if log_level := os.getenv("LOKI_LOG_LEVEL"):
            self.log_level = log_level.upper()

        if log_file := os.getenv("LOKI_LOG_FILE"):
            self.log_file = Path(log_file)

    def get_buffer_config(self) -> dict:
        """Get configuration for the log buffer."""
        return {
            "batch_size": self.batch_size,
            "flush_interval": self.flush_interval,
        }

    def get_sender_config(self) -> dict:
        """Get configuration for the HTTP sender."""
        return {
            "endpoint": self.endpoint,
            "username": self.username,
            "password": self.password,
            "timeout_seconds": self.timeout_seconds,
            "max_workers": self.max_workers,
            "extra_headers": dict(self.extra_headers),
        }

    def validate(self) -> tuple[bool, list[str]]:
        """Validate the configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        errors = []

        # Check required fields
        if not self.endpoint:
            errors.append("Endpoint URL is required")
        elif not self.endpoint.startswith(("http://", "https://")):
            errors.append("Endpoint URL must use http or https")

        if not self.app_label:
            errors.append("App label is required")

        # Validate policy
        if self.batch_size <= 0:
            errors.append("Batch size must be positive")

        if self.flush_interval <= 0:
            errors.append("Flush interval must be positive")

        if self.timeout_seconds <= 0:
            errors.append("Timeout must be positive")

        if self.max_workers <= 0:
            errors.append("Max workers must be positive")

        if self.password and not self.username:
            errors.append("Password given without a username")

        return len(errors) == 0, errors


class ConfigManager:
    """Manages loki-shipper configuration."""

    def __init__(self):
        """Initialize configuration manager."""
        self._config: Optional[ShipperConfig] = None

    def load_config(self, **overrides) -> ShipperConfig:
        """Load configuration with optional overrides.

        Args:
            **overrides: ShipperConfig field values that take precedence over defaults and environment

        Returns:
            Configured ShipperConfig instance
        """
        config = ShipperConfig()

        # Apply parameter overrides
        for name, value in overrides.items():
            if not hasattr(config, name):
                raise TypeError(f"Unknown configuration option: {name}")
            if value is not None:
                setattr(config, name, value)

        self._config = config
        return config

    def get_config(self) -> Optional[ShipperConfig]:
        """Get current configuration."""
        return self._config

    def validate_config(self) -> tuple[bool, list[str]]:
        """Validate current configuration.

        Returns:
            Tuple of (is_valid, error_messages)
        """
        if not self._config:
            return False, ["No configuration loaded"]

        return self._config.validate()


# Global configuration manager instance
_config_manager = ConfigManager()


def get_config_manager() -> ConfigManager:
    """Get the global configuration manager."""
    return _config_manager


def get_current_config() -> Optional[ShipperConfig]:
    """Get the current configuration."""
    return _config_manager.get_config()
