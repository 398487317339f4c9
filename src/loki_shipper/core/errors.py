"""Exceptions raised by loki-shipper collaborator calls.

Producer-facing ingestion calls never raise; these are only raised from
``LogShipper.setup`` and configuration helpers.
"""


class LokiShipperError(Exception):
    """Base class for loki-shipper errors."""


class ConfigurationError(LokiShipperError):
    """Raised when the shipper is set up with an invalid configuration."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid shipper configuration: " + "; ".join(errors))
