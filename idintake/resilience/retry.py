"""Retry logic with exponential backoff and jitter.

Used around a *whole* recognition (submit + poll) when the recognizer was
unreachable. Rejections, failed jobs and missing job handles are never
retried.

Example:
    >>> config = RetryConfig(max_attempts=3, initial_delay_seconds=1.0)
    >>> result = await async_retry_with_backoff(
    ...     recognizer.recognize,
    ...     config,
    ...     (RecognizerUnreachable,),
    ...     image_bytes,
    ... )
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Tuple, Type

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry logic.

    Attributes:
        max_attempts: Maximum number of attempts (including initial)
        initial_delay_seconds: Initial delay before first retry
        max_delay_seconds: Maximum delay between retries
        exponential_base: Base for exponential backoff (delay *= base ** attempt)
        jitter: Whether to add random jitter to delays
    """

    max_attempts: int = 3
    initial_delay_seconds: float = 1.0
    max_delay_seconds: float = 10.0
    exponential_base: float = 2.0
    jitter: bool = True

    def delay_for(self, attempt: int) -> float:
        delay = min(
            self.initial_delay_seconds * (self.exponential_base**attempt),
            self.max_delay_seconds,
        )
        if self.jitter:
            delay = delay * (0.5 + random.random())
        return delay


async def async_retry_with_backoff(
    func: Callable[..., Awaitable[Any]],
    config: RetryConfig,
    retryable_exceptions: Tuple[Type[BaseException], ...],
    *args,
    **kwargs,
) -> Any:
    """Await ``func`` until it succeeds or ``config.max_attempts`` is reached.

    Raises:
        The last retryable exception once attempts are exhausted, or any
        non-retryable exception immediately.
    """
    attempts = max(config.max_attempts, 1)
    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == attempts - 1:
                if attempts > 1:
                    logger.error(
                        "All %d attempts failed: %s",
                        attempts,
                        type(e).__name__,
                        extra={"retry_attempt": attempt + 1},
                    )
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                "Attempt %d/%d failed: %s. Retrying in %.2fs...",
                attempt + 1,
                attempts,
                type(e).__name__,
                delay,
                extra={"retry_attempt": attempt + 1},
            )
            await asyncio.sleep(delay)
