"""Retry utilities for handling transient failures.

Provides a decorator for retrying async operations with exponential
backoff. The Odoo client wraps every JSON-RPC call with it so that
server errors, rate limiting and dropped connections do not lose a
webhook delivery.

Key Exports:
    async_retry: Decorator for adding retry logic to async functions.
    backoff_delay: Delay before a given retry.

Example:
    >>> from ghoodoo.utils.retry import async_retry
    >>>
    >>> @async_retry(max_attempts=6, base_delay=0.5, exceptions=(ConnectionError,))
    ... async def fetch_data(url: str) -> dict:
    ...     ...

Backoff Formula:
    delay = base_delay * 2 ** (attempt_number - 1)
    For base_delay=0.5: 0.5s, 1s, 2s, 4s, 8s
"""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait after the given failed attempt (1-based)."""
    return base_delay * 2 ** (attempt - 1)


def async_retry(
    max_attempts: int = 6,
    base_delay: float = 0.5,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for async functions with exponential backoff retry logic.

    Args:
        max_attempts: Maximum number of calls before giving up. The default
            of 6 is the original attempt plus 5 retries.
        base_delay: Delay in seconds before the first retry. Each further
            retry doubles it.
        exceptions: Exception types that trigger a retry. Anything else
            propagates immediately.

    Returns:
        A decorator function that wraps async functions with retry logic.

    Raises:
        The last caught exception once max_attempts calls have failed.
        Exceptions not in the exceptions tuple are raised immediately.

    Note:
        Each retry is logged at WARNING level and exhaustion at ERROR level.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        log.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise

                    delay = backoff_delay(attempt, base_delay)
                    log.warning(
                        "retry_attempt",
                        function=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError("Retry logic error")

        return wrapper

    return decorator
