"""
Worker Initialization - Logging Module.

Configures loguru with a rotating file sink next to stderr.
"""

import sys

from loguru import logger

from carbonseal.config.settings import Settings

LOG_FILE = "logs/indexer.log"


def setup_logging(settings: Settings) -> None:
    """Configure logger with file rotation at the configured level."""
    level = settings.log_level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level)
    logger.add(
        LOG_FILE,
        rotation="1 day",
        retention="7 days",
        level=level,
        encoding="utf-8",
    )

    logger.info(f"Starting CarbonSeal indexer ({settings.environment})...")
