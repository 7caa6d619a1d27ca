"""
Bounded retry with backoff for asynchronous replica calls

Provides resilient retry logic for transient failures with:
- A fixed attempt limit (default 3 attempts in total)
- Linear or fixed backoff between attempts
- A per-attempt timeout via asyncio.timeout
- Exception classification (non-retryable errors fail immediately)
- Callback support for metrics integration

Usage:
    from todosync.utils.retry import RetryPolicy, call_with_retry

    policy = RetryPolicy(max_attempts=3, base_delay=1.0, timeout=30.0)
    records = await call_with_retry(accessor.list, policy=policy)
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from todosync.errors import AccessError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry settings for one accessor call

    Attributes:
        max_attempts: Total attempts including the first one (default: 3)
        base_delay: Delay in seconds before the first retry (default: 1.0)
        backoff: "linear" (delay * attempt) or "fixed" (default: linear)
        timeout: Per-attempt timeout in seconds, None for no bound (default: 30.0)
    """

    max_attempts: int = 3
    base_delay: float = 1.0
    backoff: str = "linear"
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")
        if self.backoff not in ("linear", "fixed"):
            raise ValueError(f"Unknown backoff strategy: {self.backoff}")

    def delay_for(self, attempt: int) -> float:
        """
        Delay before the retry that follows the given failed attempt

        Args:
            attempt: 1-based number of the attempt that just failed

        Returns:
            Delay in seconds
        """
        if self.backoff == "fixed":
            return self.base_delay
        return self.base_delay * attempt


class RetryExhausted(Exception):
    """Raised when all attempts failed; carries the last error and attempt count."""

    def __init__(self, last_error: Exception, attempts: int):
        self.last_error = last_error
        self.attempts = attempts
        super().__init__(f"{type(last_error).__name__}: {last_error}")


def is_retryable_exception(exception: Exception) -> bool:
    """
    Determine if an accessor exception is transient

    Retryable:
    - AccessError with retryable=True
    - Timeouts (asyncio.timeout raises TimeoutError)
    - ConnectionError

    Args:
        exception: The exception to check

    Returns:
        True if the call may succeed when repeated
    """
    if isinstance(exception, AccessError):
        return exception.retryable

    if isinstance(exception, (TimeoutError, ConnectionError)):
        return True

    return False


async def call_with_retry(
    func: Callable[..., Awaitable[Any]],
    *args,
    policy: Optional[RetryPolicy] = None,
    is_retryable: Callable[[Exception], bool] = is_retryable_exception,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
    **kwargs,
) -> tuple[Any, int]:
    """
    Await ``func(*args, **kwargs)`` with a timeout and bounded retries

    Args:
        func: Coroutine function to call
        *args: Positional arguments for func
        policy: Retry settings (default: RetryPolicy())
        is_retryable: Classifier deciding whether an exception is transient
        on_retry: Callback(attempt, exception, delay) called before each retry
        **kwargs: Keyword arguments for func

    Returns:
        Tuple of (result, number of attempts used)

    Raises:
        RetryExhausted: When the last allowed attempt failed
        Exception: Non-retryable exceptions are re-raised unchanged
    """
    policy = policy or RetryPolicy()
    func_name = getattr(func, "__name__", "function")

    for attempt in range(1, policy.max_attempts + 1):
        try:
            if policy.timeout is None:
                result = await func(*args, **kwargs)
            else:
                async with asyncio.timeout(policy.timeout):
                    result = await func(*args, **kwargs)
            return result, attempt

        except Exception as e:
            if not is_retryable(e):
                logger.error(
                    f"Non-retryable exception in {func_name}: {type(e).__name__}: {e}"
                )
                raise

            if attempt == policy.max_attempts:
                logger.error(
                    f"Max attempts ({policy.max_attempts}) exceeded for {func_name}: "
                    f"{type(e).__name__}: {e}"
                )
                raise RetryExhausted(e, attempt) from e

            delay = policy.delay_for(attempt)

            logger.warning(
                f"Attempt {attempt}/{policy.max_attempts} failed for {func_name}: "
                f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
            )

            if on_retry:
                try:
                    on_retry(attempt, e, delay)
                except Exception as callback_error:
                    logger.error(f"Error in retry callback: {callback_error}")

            await asyncio.sleep(delay)

    raise RuntimeError(f"Unexpected error in retry logic for {func_name}")
