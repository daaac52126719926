"""
Utility functions and helpers
"""

from .logging import setup_logging, get_logger, set_level, setup_file_logging, LoggerMixin
from .database import Base, Database, create_db_engine
from .dates import parse_timestamp, parse_date_input, day_start, day_end

__all__ = [
    "setup_logging",
    "get_logger",
    "set_level",
    "setup_file_logging",
    "LoggerMixin",
    "Base",
    "Database",
    "create_db_engine",
    "parse_timestamp",
    "parse_date_input",
    "day_start",
    "day_end",
]
