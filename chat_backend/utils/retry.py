"""
Retry with exponential backoff for async operations.

The wait after failed attempt ``n`` (1-based) is ``base_delay * 2 ** n``
seconds, so with a 1 s base the waits are 2 s, then 4 s. The final attempt is
never followed by a wait; its error is re-raised to the caller.

The sleep function is injectable so tests can record the waits instead of
actually sleeping. ``asyncio.CancelledError`` is not an ``Exception`` and is
never caught here, so cancelling the calling task stops the loop.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import httpx

from chat_backend.errors import UpstreamHTTPError
from chat_backend.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[None]]
RetryPredicate = Callable[[Exception], bool]

# Client errors that are still worth another try
RETRYABLE_CLIENT_STATUSES = frozenset({408, 429})


def retry_all(error: Exception) -> bool:
    """Treat every failure as transient."""
    return True


def is_transient_http_error(error: Exception) -> bool:
    """
    Retry network errors, timeouts, 408, 429 and 5xx; give up on other 4xx.

    A 400 or 401 from the upstream will not change on the next attempt.
    """
    if isinstance(error, UpstreamHTTPError):
        return error.status_code >= 500 or error.status_code in RETRYABLE_CLIENT_STATUSES
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status in RETRYABLE_CLIENT_STATUSES
    return True


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    return base_delay * (2 ** attempt)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    is_retryable: RetryPredicate = retry_all,
    sleep: SleepFn = asyncio.sleep,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
) -> T:
    """
    Run ``operation`` until it succeeds or the attempts run out.

    Args:
        operation: Zero-argument coroutine function, called once per attempt
        max_attempts: Total attempts including the first one
        base_delay: Backoff base in seconds
        is_retryable: Returns False for errors that must not be retried
        sleep: Awaitable sleep, ``asyncio.sleep`` by default
        on_retry: Called with (attempt, error, delay) before each wait

    Returns:
        The first successful result.

    Raises:
        The last error raised by ``operation``.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_attempts:
                logger.error(f"Attempt {attempt} failed (final): {e}")
                raise
            if not is_retryable(e):
                logger.error(f"Attempt {attempt} failed with non-retryable error: {e}")
                raise

            delay = backoff_delay(attempt, base_delay)
            logger.warning(f"Attempt {attempt} failed: {e}. Retrying in {delay:.1f}s")
            if on_retry is not None:
                on_retry(attempt, e, delay)
            await sleep(delay)
