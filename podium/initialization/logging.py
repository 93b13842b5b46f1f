"""
Logging initialization.

Configures the loguru logger for API and worker processes.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger


def setup_logging(component: str = "api", level: str = "INFO") -> None:
    """
    Configure logger with console output and file rotation.

    Args:
        component: Process name used in the startup line
        level: Minimum log level
    """
    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        "logs/podium.log",
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info(f"Starting Podium {component}...")
