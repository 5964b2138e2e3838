"""
Logger Utility for the Dark Pattern Detector
Provides consistent logging configuration
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

NOISY_LOGGERS = ("httpx", "httpcore", "asyncio")


def _console_level(verbosity: int) -> int:
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logger(verbosity: int = 1,
                 log_file: Optional[Union[str, Path]] = None,
                 logger_name: str = "dpd",
                 console: Optional[Console] = None) -> logging.Logger:
    """Set up logger with rich console output and an optional detailed file log."""

    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG if (verbosity >= 2 or log_file) else _console_level(verbosity))

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=(verbosity >= 2),
        rich_tracebacks=True,
        markup=False,
    )
    console_handler.setLevel(_console_level(verbosity))
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)
        logger.debug(f"Detailed logs saved to: {log_path}")

    # Suppress overly verbose third-party loggers unless in debug
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING if verbosity < 2 else logging.INFO)

    return logger

