"""Resilience utilities for recognizer calls."""

from idintake.resilience.retry import RetryConfig, async_retry_with_backoff

__all__ = [
    "RetryConfig",
    "async_retry_with_backoff",
]
