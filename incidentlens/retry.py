import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog

from incidentlens.config import settings
from incidentlens.errors import RetryableServiceError

logger = structlog.get_logger()

T = TypeVar("T")


async def call_with_retry(
    operation: Callable[[], Awaitable[T]],
    name: str,
    max_attempts: int | None = None,
    backoff_seconds: float | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``operation()``, retrying ``RetryableServiceError`` with exponential backoff.

    Any other exception propagates on the first failure.  After
    ``max_attempts`` the last retryable error is re-raised.
    """
    if max_attempts is None:
        max_attempts = settings.RETRY_MAX_ATTEMPTS
    if backoff_seconds is None:
        backoff_seconds = settings.RETRY_BACKOFF_SECONDS
    max_attempts = max(1, max_attempts)

    attempt = 0
    while True:
        attempt += 1
        try:
            return await operation()
        except RetryableServiceError as exc:
            if attempt >= max_attempts:
                logger.error("retry_exhausted", operation=name, attempts=attempt, error=str(exc))
                raise
            delay = backoff_seconds * (2 ** (attempt - 1))
            delay += random.uniform(0, delay * 0.1)
            logger.warning(
                "retrying_after_error",
                operation=name,
                attempt=attempt,
                max_attempts=max_attempts,
                delay_s=round(delay, 2),
                error=str(exc),
            )
            await sleep(delay)
