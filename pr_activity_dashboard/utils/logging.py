"""
Logging configuration and utilities
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from ..config import get_settings

PACKAGE_LOGGER = "pr_activity_dashboard"

# Set from the command line; applied to every logger configured afterwards
_level_override: Optional[str] = None
_file_handlers: list[logging.Handler] = []


def setup_logging(
    name: Optional[str] = None,
    level: Optional[str] = None,
    format_string: Optional[str] = None
) -> logging.Logger:
    """
    Setup logging configuration

    Args:
        name: Logger name
        level: Log level
        format_string: Log format string

    Returns:
        Configured logger instance
    """
    settings = get_settings()

    log_level = level or _level_override or settings.log_level
    log_format = format_string or settings.log_format

    logger = logging.getLogger(name or __name__)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # stderr keeps stdout free for the CLI report
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    console_handler.setFormatter(logging.Formatter(log_format))
    logger.addHandler(console_handler)

    for handler in _file_handlers:
        logger.addHandler(handler)

    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return setup_logging(name)


def _package_loggers() -> list[logging.Logger]:
    return [
        logger for logger in logging.Logger.manager.loggerDict.values()
        if isinstance(logger, logging.Logger) and logger.name.startswith(PACKAGE_LOGGER)
    ]


def set_level(level: str) -> None:
    """Change the level of every package logger, including ones created later"""
    global _level_override
    _level_override = level

    numeric = getattr(logging, level.upper(), logging.INFO)
    for logger in _package_loggers():
        logger.setLevel(numeric)
        for handler in logger.handlers:
            handler.setLevel(numeric)


def setup_file_logging(
    log_file: Path,
    level: Optional[str] = None
) -> logging.Handler:
    """
    Also write every package logger's records to a file

    Args:
        log_file: Path to log file
        level: Log level for file handler

    Returns:
        The file handler
    """
    settings = get_settings()
    log_level = level or _level_override or settings.log_level

    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(getattr(logging, log_level.upper(), logging.INFO))
    file_handler.setFormatter(logging.Formatter(settings.log_format))
    _file_handlers.append(file_handler)

    for logger in _package_loggers():
        logger.addHandler(file_handler)

    return file_handler


class LoggerMixin:
    """Mixin class to add logging capability to other classes"""

    @property
    def logger(self) -> logging.Logger:
        """Get logger for this class"""
        return get_logger(f"{self.__class__.__module__}.{self.__class__.__name__}")
