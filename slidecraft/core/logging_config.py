"""
SlideCraft Logging Configuration

One handler set on the ``slidecraft`` logger, shared by the engine, the
outline generator, the Gemini client and the API layer (``slidecraft.api.*``).
"""

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional


class LogLevel(Enum):
    """Log level enumeration."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        """Parse a level name such as ``"info"``; unknown names mean INFO."""
        return cls.__members__.get((name or "").strip().upper(), cls.INFO)


DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_NAMESPACE = "slidecraft"

# HTTP client loggers that echo every request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")

_initialized = False


def _build_handlers(
    level: LogLevel,
    formatter: logging.Formatter,
    log_file: Optional[Path],
    console_output: bool
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []

    if console_output:
        handlers.append(logging.StreamHandler(sys.stdout))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level.value)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console_output: bool = True
) -> None:
    """
    Configure the ``slidecraft`` logger tree.

    Calling it again replaces the previous handlers.

    Args:
        level: Minimum log level to capture
        log_file: Optional path to log file
        verbose: If True, include line numbers and function names
        console_output: If True, log to stdout
    """
    global _initialized

    root_logger = logging.getLogger(ROOT_NAMESPACE)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(VERBOSE_FORMAT if verbose else DEFAULT_FORMAT, datefmt=DATE_FORMAT)
    for handler in _build_handlers(level, formatter, log_file, console_output):
        root_logger.addHandler(handler)

    root_logger.setLevel(level.value)
    root_logger.propagate = False

    quiet_level = logging.DEBUG if level == LogLevel.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)

    _initialized = True
    root_logger.debug(f"Logging initialized - Level: {level.name}, Verbose: {verbose}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``slidecraft`` namespace, e.g. ``get_logger("engine")``."""
    if not _initialized:
        setup_logging()

    if name == ROOT_NAMESPACE or name.startswith(f"{ROOT_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_NAMESPACE}.{name}")
