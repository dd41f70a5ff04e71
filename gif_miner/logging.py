"""
Logging setup - Single point of change for all logging configuration.

Usage in any module:
    from gif_miner.logging import get_logger
    logger = get_logger(__name__)

Captures:
- Application logs (via get_logger)
- Uncaught exceptions
- Optional rotating log file
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

# Environment variables for configuration
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE", "")  # Optional file path
WORKER_ID = os.getenv("WORKER_ID", "main")

ROOT_LOGGER_NAME = "gif_miner"

# Flags
_handlers_configured = False
_file_paths: set[str] = set()

# Default format
DEFAULT_FORMAT = "%(asctime)s | {worker} | %(levelname)s | %(threadName)s | %(name)s | %(message)s"


def _add_file_handler(root_logger: logging.Logger, log_path: Path, formatter: logging.Formatter) -> None:
    """Attach a rotating file handler once per path."""
    key = str(log_path.resolve())
    if key in _file_paths:
        return
    log_path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=50 * 1024 * 1024,  # 50MB
        backupCount=5,
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)
    _file_paths.add(key)


def _setup_handlers() -> None:
    """Setup all logging handlers (called once on first logger request)."""
    global _handlers_configured

    if _handlers_configured:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    formatter = logging.Formatter(DEFAULT_FORMAT.format(worker=WORKER_ID))

    # 1. Console handler (always enabled)
    console_handler = logging.StreamHandler(sys.__stdout__)  # Use original stdout
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # 2. File handler (if LOG_FILE is set)
    if LOG_FILE:
        _add_file_handler(root_logger, Path(LOG_FILE), formatter)

    # 3. Capture uncaught exceptions
    def exception_handler(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        root_logger.critical("Uncaught exception", exc_info=(exc_type, exc_value, exc_tb))

    sys.excepthook = exception_handler

    _handlers_configured = True


def set_level(level: str) -> None:
    """Override the package log level at runtime (e.g. from config or CLI)."""
    _setup_handlers()
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(getattr(logging, level.upper(), logging.INFO))


def set_log_file(path: str) -> None:
    """Also write package logs to ``path`` (e.g. logging.log_file from config)."""
    if not path:
        return
    _setup_handlers()
    formatter = logging.Formatter(DEFAULT_FORMAT.format(worker=WORKER_ID))
    _add_file_handler(logging.getLogger(ROOT_LOGGER_NAME), Path(path), formatter)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    _setup_handlers()

    if name is None:
        return logging.getLogger(ROOT_LOGGER_NAME)

    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


# Convenience exports
logger = get_logger()
