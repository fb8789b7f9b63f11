"""Retry with exponential backoff for AI provider calls

A call is retried only when the failure looks transient: timeouts, rate
limits and 5xx answers. Anything else (bad key, malformed prompt) is raised
on the first attempt.
"""

import asyncio
import random
import logging
from typing import Callable, Any, TypeVar
from functools import wraps
import httpx

from antar.resilience.metrics import record_retry

logger = logging.getLogger(__name__)

T = TypeVar('T')

MAX_RETRIES = 3
BASE_DELAY = 1.0  # seconds
MAX_DELAY = 30.0  # seconds
JITTER = 0.1  # +/- fraction of the delay

RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

# openai SDK exception classes, matched by name
RETRYABLE_ERROR_NAMES = {'RateLimitError', 'APITimeoutError', 'APIConnectionError', 'InternalServerError'}


def is_retryable_error(exc: Exception) -> bool:
    """True if a later attempt could plausibly succeed"""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES

    if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
        return True

    return type(exc).__name__ in RETRYABLE_ERROR_NAMES


def calculate_backoff(attempt: int) -> float:
    """
    Delay before retry number attempt + 1

    BASE_DELAY doubled per attempt, capped at MAX_DELAY, with jitter so
    parallel callers don't retry in lockstep: roughly 1s, 2s, 4s, ...
    """
    delay = min(BASE_DELAY * (2 ** attempt), MAX_DELAY)
    return max(delay + random.uniform(-JITTER, JITTER) * delay, 0.0)


async def retry_with_backoff(
    func: Callable[..., T],
    *args: Any,
    max_retries: int = MAX_RETRIES,
    **kwargs: Any
) -> T:
    """
    Await func(*args, **kwargs), retrying transient failures

    max_retries counts retries, so func runs at most max_retries + 1 times.

    Raises:
        The first non-retryable exception, or the last one once retries
        are used up
    """
    name = getattr(func, "__name__", repr(func))
    attempt = 0
    while True:
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if not is_retryable_error(e):
                logger.warning(f"[RETRY] {name}: {type(e).__name__} is not retryable")
                raise
            if attempt >= max_retries:
                logger.error(f"[RETRY] {name}: giving up after {attempt + 1} attempts")
                raise

            delay = calculate_backoff(attempt)
            attempt += 1
            record_retry(name)
            logger.info(
                f"[RETRY] {name}: {type(e).__name__}, retry {attempt}/{max_retries} in {delay:.2f}s"
            )
            await asyncio.sleep(delay)


def with_retry(max_retries: int = MAX_RETRIES) -> Callable:
    """Decorator form of retry_with_backoff"""
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            return await retry_with_backoff(func, *args, max_retries=max_retries, **kwargs)
        return wrapper
    return decorator
