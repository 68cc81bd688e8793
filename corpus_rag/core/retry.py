"""Retry with jittered backoff for flaky I/O."""
import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

import httpx
import requests

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSIENT_STATUS_CODES = frozenset({429, 503})


def _status_code(exc: BaseException) -> Optional[int]:
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if isinstance(status, int):
        return status
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    return status if isinstance(status, int) else None


def is_transient_error(exc: BaseException) -> bool:
    """Check whether an error is worth retrying.

    Connection resets, timeouts and HTTP 429/503 are transient.
    """
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, ConnectionResetError)):
        return True
    if isinstance(exc, (httpx.TransportError, requests.ConnectionError, requests.Timeout)):
        return True
    if _status_code(exc) in TRANSIENT_STATUS_CODES:
        return True
    text = str(exc).lower()
    return "timeout" in text or "econnreset" in text or "etimedout" in text


def backoff_delay(attempt: int, min_backoff: float, max_backoff: float) -> float:
    """Jittered delay, grows with attempt and never exceeds max_backoff."""
    delay = min_backoff * (2 ** attempt) * (1 + random.random())
    return min(max_backoff, delay)


async def retry_async(
    fn: Callable[[], Awaitable[T]],
    *,
    retries: int = 1,
    min_backoff: float = 0.12,
    max_backoff: float = 0.25,
    is_transient: Callable[[BaseException], bool] = is_transient_error,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call fn, retrying transient failures.

    Args:
        fn: Zero-argument coroutine factory.
        retries: Extra attempts after the first one.
        min_backoff: Base delay in seconds.
        max_backoff: Delay cap in seconds.
        is_transient: Predicate deciding whether an error is retried.
        sleep: Awaitable sleep, injectable for tests.

    Returns:
        Result of the first successful call.
    """
    attempt = 0
    while True:
        try:
            return await fn()
        except Exception as e:
            if attempt >= retries or not is_transient(e):
                raise
            delay = backoff_delay(attempt, min_backoff, max_backoff)
            logger.debug(f"Transient error ({e!r}), retry {attempt + 1}/{retries} in {delay:.3f}s")
            attempt += 1
            await sleep(delay)
