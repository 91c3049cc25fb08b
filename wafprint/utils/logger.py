"""
Logger Utility for wafprint
Provides consistent logging configuration
"""

import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"

_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def setup_logger(verbosity: int = 1,
                 log_file: Optional[str] = None,
                 logger_name: str = "wafprint",
                 console: Optional[Console] = None) -> logging.Logger:
    """Set up logger with rich console output and an optional log file."""

    logger = logging.getLogger(logger_name)
    console_level = _LEVELS.get(verbosity, logging.DEBUG)
    logger.setLevel(logging.DEBUG if log_file else console_level)

    # Clear existing handlers
    logger.handlers.clear()

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=(verbosity >= 2),
        rich_tracebacks=True,
        markup=False
    )
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

        logger.debug(f"Detailed logs saved to: {log_path}")

    # Suppress overly verbose third-party loggers unless in debug
    noisy_loggers = [
        "httpx", "httpcore", "asyncio",
    ]
    for name in noisy_loggers:
        logging.getLogger(name).setLevel(logging.WARNING if verbosity < 2 else logging.INFO)

    return logger
