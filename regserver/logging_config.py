"""Centralized logging configuration for reg-server.

Provides structured logging for the web server and its registry and
scanner clients.
"""

import logging
import logging.handlers
import os
from pathlib import Path
from typing import Optional

# Environment variables
DEBUG_MODE = os.getenv("REG_SERVER_DEBUG", "0") == "1"
LOG_LEVEL = os.getenv("REG_SERVER_LOG_LEVEL", "DEBUG" if DEBUG_MODE else "INFO")
LOG_DIR = os.getenv("REG_SERVER_LOG_DIR")

# Logging format
DETAILED_FORMAT = (
    "[%(asctime)s] [%(levelname)-8s] [%(name)s] [%(filename)s:%(lineno)d] %(message)s"
)
SIMPLE_FORMAT = "[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s"

# Use detailed format in debug mode
LOG_FORMAT = DETAILED_FORMAT if DEBUG_MODE else SIMPLE_FORMAT

ROOT_LOGGER_NAME = "regserver"


def _get_file_handler(log_file: Path, level: int) -> logging.FileHandler:
    """Create a rotating file handler for the given log file."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def _get_console_handler(level: int) -> logging.StreamHandler:
    """Create a console handler for streaming logs."""
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def configure_server_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
    include_console: bool = True,
) -> logging.Logger:
    """
    Configure logging for the server and every regserver module.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for a rotating server.log; no file logging if unset
        include_console: Whether to also log to console

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = LOG_LEVEL
    if log_dir is None:
        log_dir = LOG_DIR

    level = getattr(logging, log_level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers.clear()

    if log_dir:
        logger.addHandler(_get_file_handler(Path(log_dir) / "server.log", level))

    if include_console:
        logger.addHandler(_get_console_handler(level))

    logger.debug(f"Logging configured (level={log_level}, log_dir={log_dir})")
    return logger


class StructuredLogContext:
    """Helper for adding context to log messages."""

    def __init__(self, **context):
        self.context = context

    def bind(self, **extra) -> "StructuredLogContext":
        """New context with additional fields."""
        return StructuredLogContext(**{**self.context, **extra})

    def __str__(self):
        items = [f"{k}={v}" for k, v in self.context.items()]
        return " | ".join(items)
