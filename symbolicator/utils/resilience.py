"""
Resilience utilities for error handling and fault tolerance.

This module provides:
- retry_with_backoff decorator for transient errors
"""

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar, ParamSpec
from functools import wraps

logger = logging.getLogger(__name__)

# Type variables for generic decorator
P = ParamSpec('P')
T = TypeVar('T')


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    exponential_base: float = 2.0,
    exceptions: tuple = (Exception,)
):
    """
    Decorator for retrying coroutines with exponential backoff.

    Applied to network reads of scripts and source map documents, where
    connection resets and timeouts are usually transient.

    Args:
        max_retries: Maximum number of attempts (default: 3)
        base_delay: Initial delay in seconds between retries (default: 0.5)
        max_delay: Maximum delay in seconds between retries (default: 10.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        exceptions: Tuple of exception types to catch and retry (default: all exceptions)

    Returns:
        Decorated coroutine function with retry logic

    Example:
        @retry_with_backoff(max_retries=3, exceptions=(httpx.TransportError,))
        async def fetch(url):
            return await client.get(url)
    """
    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            for attempt in range(max_retries):
                try:
                    result = await func(*args, **kwargs)

                    if attempt > 0:
                        logger.info(
                            f"{func.__name__} succeeded on attempt {attempt + 1}/{max_retries}"
                        )

                    return result

                except exceptions as e:
                    if attempt == max_retries - 1:
                        logger.warning(
                            f"{func.__name__} failed after {max_retries} attempts: {e}"
                        )
                        raise

                    delay = min(base_delay * (exponential_base ** attempt), max_delay)

                    logger.warning(
                        f"{func.__name__} failed on attempt {attempt + 1}/{max_retries}: {e}. "
                        f"Retrying in {delay:.1f}s..."
                    )

                    await asyncio.sleep(delay)

            raise RuntimeError(f"{func.__name__} called with max_retries={max_retries}")

        return wrapper

    return decorator
