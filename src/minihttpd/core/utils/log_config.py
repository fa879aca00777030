"""Logging configuration for the file server.

This module provides centralized logging configuration using Loguru.
``configure_logging`` replaces the default handler with a console handler at
the chosen level and, optionally, a rotating file handler that always records
DEBUG detail.
"""

import sys
from pathlib import Path
from typing import Final

from loguru import logger

LOG_DIR: Final = Path.home() / ".minihttpd" / "logs"
LOG_LEVELS: Final = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")

CONSOLE_FORMAT: Final = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT: Final = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(level: str = "INFO", log_file: bool = True, log_dir: Path = LOG_DIR) -> None:
    """Install the console (and file) handlers.

    Args:
        level: Minimum level printed to the console
        log_file: Also write DEBUG and above to ``log_dir/server.log``
        log_dir: Directory for the rotating log file
    """
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level.upper(),
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_dir / "server.log",
            rotation="10 MB",
            retention="1 week",
            compression="zip",
            format=FILE_FORMAT,
            level="DEBUG",
            backtrace=True,
            diagnose=False,
        )


__all__ = ["configure_logging", "logger", "LOG_DIR", "LOG_LEVELS"]
