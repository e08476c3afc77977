"""
Backend Logging Configuration

API loggers live under ``slidecraft.api`` so one setup covers the service and
the generation library.
"""

import logging

from slidecraft.core.logging_config import LogLevel, get_logger as get_library_logger
from slidecraft.core.logging_config import setup_logging as setup_library_logging


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Set up logging from a level name taken from settings."""
    setup_library_logging(LogLevel.from_name(level), verbose=verbose)


def get_logger(name: str) -> logging.Logger:
    """Get an API logger, e.g. ``get_logger("sessions")``."""
    return get_library_logger(f"api.{name}")
