"""
Retry utilities with exponential backoff.

Used around the image generation call when retries are enabled. Only
transport failures are retried; credential and empty-payload failures are
final on the first attempt.
"""

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type, TypeVar

from slidecraft.core.exceptions import GenerationTransportError
from slidecraft.core.logging_config import get_logger

logger = get_logger("core.retry")

T = TypeVar("T")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 0
    base_delay: float = 2.0  # seconds
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    jitter_range: Tuple[float, float] = (0.5, 1.5)
    retryable_exceptions: Tuple[Type[Exception], ...] = (GenerationTransportError,)


NO_RETRY_CONFIG = RetryConfig(max_retries=0)


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay before the next retry attempt.

    Args:
        attempt: Current attempt number (0-indexed)
        config: Retry configuration

    Returns:
        Delay in seconds before next attempt
    """
    delay = config.base_delay * (config.exponential_base ** attempt)
    delay = min(delay, config.max_delay)

    if config.jitter:
        delay *= random.uniform(*config.jitter_range)

    return delay


def generation_retry_config(max_retries: int) -> RetryConfig:
    """Build the retry configuration for image generation."""
    if max_retries <= 0:
        return NO_RETRY_CONFIG
    return RetryConfig(max_retries=max_retries, base_delay=5.0, max_delay=60.0)


async def retry_async_call(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    config: Optional[RetryConfig] = None,
    on_retry: Optional[Callable[[Exception, int], None]] = None,
    **kwargs: Any
) -> T:
    """
    Retry an async function call with exponential backoff.

    Exceptions outside ``config.retryable_exceptions`` propagate immediately.

    Example:
        image_url = await retry_async_call(
            client.generate_image,
            prompt, references, size,
            config=RetryConfig(max_retries=2)
        )
    """
    config = config or NO_RETRY_CONFIG

    for attempt in range(config.max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except config.retryable_exceptions as e:
            if attempt >= config.max_retries:
                if config.max_retries:
                    logger.error(
                        f"All {config.max_retries + 1} attempts failed. Last error: {e}"
                    )
                raise

            delay = calculate_delay(attempt, config)
            logger.warning(
                f"Attempt {attempt + 1}/{config.max_retries + 1} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            if on_retry:
                on_retry(e, attempt)
            await asyncio.sleep(delay)

    raise RuntimeError("Retry logic failed unexpectedly")
