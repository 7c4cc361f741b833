"""
Logging configuration
"""

import sys

from loguru import logger

from app.core.config import settings

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level> | {extra}"
)


def setup_logging():
    """Setup logging configuration"""
    # Remove default handler
    logger.remove()

    if settings.log_format == "json":
        logger.add(sys.stderr, level=settings.log_level, serialize=True)
    else:
        logger.add(sys.stderr, level=settings.log_level, format=TEXT_FORMAT, colorize=True)


# Create logger instance
log = logger
