"""Logging configuration for api-doc-import.

Library modules only call get_logger(); the CLI configures handlers.
"""

import logging
import sys
from pathlib import Path

LOGGER_NAME = "api_doc_import"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(
    level: int | str = logging.WARNING,
    log_file: Path | None = None,
    console: bool = True,
) -> None:
    """Configure the package logger.

    Args:
        level: Logging level name or number.
        log_file: Optional path to a log file.
        console: Whether to log to stderr.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a module, e.g. get_logger(__name__)."""
    return logging.getLogger(name)
