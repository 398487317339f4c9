"""Logger configuration for the shipper's own diagnostics."""

import sys

from loguru import logger

from .settings import ShipperConfig


def setup_logging(config: ShipperConfig) -> None:
    """Configure loguru logger for both console and file output.

    Sets up diagnostic logging with:
    - Console output on stderr with colored output
    - File output with rotation and retention based on settings
    - Configurable log level from settings

    Shipped entries never go through these sinks.
    """

    # Remove default loguru handler
    logger.remove()

    if config.log_to_console:
        logger.add(
            sink=sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=config.log_level,
            colorize=True,
        )

    # Add file handler if enabled
    if config.log_file:
        logger.add(
            sink=str(config.log_file),
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            level=config.log_level,
            rotation=config.log_rotation,
            retention=config.log_retention,
            compression="gz",  # Compress rotated logs
            enqueue=True,  # Thread-safe logging
        )

        logger.info(f"File logging enabled: {config.log_file}")
        logger.info(f"Log level: {config.log_level}")
