"""
Retry with exponential backoff.

``delay = base_delay * 2 ** (retry - 1)``: with three retries and a one
second base the waits are 1s, 2s and 4s, then the last error is raised.
Client errors (4xx) are raised immediately.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from staff_console.services.order_api.base import OrderAPIError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(retry: int, base_delay: float) -> float:
    """Delay before the given retry (1-based)."""
    return base_delay * (2 ** (retry - 1))


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_retries: int = 3,
    base_delay: float = 1.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "request",
    on_attempt: Optional[Callable[[int], None]] = None,
) -> T:
    """
    Await ``operation`` until it succeeds or retries run out.

    Raises:
        OrderAPIError: The last failure once retries are exhausted, or the
            first non-retryable failure
    """
    attempt = 0
    while True:
        attempt += 1
        if on_attempt is not None:
            on_attempt(attempt)
        try:
            return await operation()
        except OrderAPIError as e:
            if not e.retryable:
                logger.warning(f"{label} failed with a client error, not retrying: {e}")
                raise
            if attempt > max_retries:
                logger.error(f"{label} failed after {attempt} attempts: {e}")
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                f"🔄 {label} failed ({e}); retry {attempt}/{max_retries} in {delay:.1f}s"
            )
            await sleep(delay)
