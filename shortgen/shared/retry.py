"""
Retry logic with exponential backoff.

Used at collaborator boundaries that may fail transiently (media probing).
Rendering is never retried by the compositor.
"""

import asyncio
import functools
import inspect
import time
from typing import Any, Callable, Tuple, Type, TypeVar

from shortgen.shared.errors import RetryableError
from shortgen.shared.logging import get_logger

T = TypeVar("T")
logger = get_logger("shared.retry")


def backoff_delay(base_delay: float, attempt: int) -> float:
    """Delay before the retry following `attempt` (0-based): base, 2*base, 4*base..."""
    return base_delay * (2 ** attempt)


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 2,
    retryable_exceptions: Tuple[Type[Exception], ...] = (RetryableError,)
):
    """
    Decorator for retrying sync or async functions with exponential backoff.

    Exceptions outside `retryable_exceptions` propagate immediately. When
    every attempt fails, the last retryable exception is re-raised.

    Args:
        max_attempts: Maximum number of attempts (default: 3)
        base_delay: Base delay in seconds (default: 2)
        retryable_exceptions: Exception types to retry on (default: RetryableError)

    Example:
        @retry_with_backoff(max_attempts=2, base_delay=1)
        async def probe():
            ...
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    def _log_failure(func_name: str, attempt: int, error: Exception) -> bool:
        """Log a failed attempt. Returns True when another attempt follows."""
        if attempt < max_attempts - 1:
            logger.warning(
                f"Retry attempt {attempt + 1}/{max_attempts} for {func_name} "
                f"after {backoff_delay(base_delay, attempt)}s delay",
                extra={"error": str(error), "attempt": attempt + 1}
            )
            return True
        logger.error(
            f"All {max_attempts} retry attempts failed for {func_name}",
            extra={"error": str(error)}
        )
        return False

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> T:
                for attempt in range(max_attempts):
                    try:
                        return await func(*args, **kwargs)
                    except retryable_exceptions as e:
                        if not _log_failure(func.__name__, attempt, e):
                            raise
                    await asyncio.sleep(backoff_delay(base_delay, attempt))
                raise RuntimeError(f"Function {func.__name__} failed after {max_attempts} attempts")

            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except retryable_exceptions as e:
                    if not _log_failure(func.__name__, attempt, e):
                        raise
                time.sleep(backoff_delay(base_delay, attempt))
            raise RuntimeError(f"Function {func.__name__} failed after {max_attempts} attempts")

        return sync_wrapper

    return decorator
