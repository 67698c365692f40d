"""
Logging configuration.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from delta_bot.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def setup_logging(level: Optional[str] = None, log_dir: Optional[Path] = None):
    """Configure application logging."""
    level = level or settings.log_level
    log_dir = Path(log_dir or settings.log_dir)

    # Remove default handler
    logger.remove()

    # Console handler
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    # File handler
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        log_dir / "delta_bot_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="30 days",
        level="DEBUG",
        format=FILE_FORMAT,
    )

    # Error-only file
    logger.add(
        log_dir / "errors_{time:YYYY-MM-DD}.log",
        rotation="1 day",
        retention="30 days",
        level="ERROR",
        format=FILE_FORMAT,
    )

    logger.info("Logging configured successfully")
