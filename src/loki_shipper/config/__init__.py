"""Configuration module for loki-shipper."""

from .logger_config import setup_logging
from .settings import ConfigManager, ShipperConfig, get_config_manager, get_current_config

__all__ = ["ShipperConfig", "ConfigManager", "get_config_manager", "get_current_config", "setup_logging"]
