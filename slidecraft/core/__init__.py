"""
SlideCraft Core Module

Contains constants, exceptions, logging and retry helpers.
"""

from .constants import *
from .exceptions import *
from .logging_config import setup_logging, get_logger, LogLevel
from .retry import RetryConfig, retry_async_call, generation_retry_config

__all__ = [
    'setup_logging',
    'get_logger',
    'LogLevel',
    'RetryConfig',
    'retry_async_call',
    'generation_retry_config',
    # Constants
    'ImageSize',
    'DEFAULT_CHARACTER_PROMPT',
    'STORYBOARD_SYSTEM_INSTRUCTION',
    'CTA_PHRASE',
    'CTA_TITLE',
    # Exceptions
    'SlideCraftError',
    'PreconditionError',
    'MissingReferenceError',
    'EmptyTopicError',
    'InvalidReferenceError',
    'MissingKeyError',
    'GenerationError',
    'NoImageReturnedError',
    'GenerationTransportError',
    'OutlineError',
    'OutlineParseError',
    'OutlineInvalidError',
    'SceneBusyError',
    'BatchInProgressError',
    'CreditLimitError',
    'SessionNotFoundError',
]
