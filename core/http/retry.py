"""Retry decorator factory for async HTTP operations, built on tenacity."""

from __future__ import annotations

import asyncio
import logging

from aiohttp import ClientError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


def retry_async(
    max_retries: int = 2,
    retry_delay: float = 0.5,
    backoff_factor: float = 2.0,
    retry_exceptions: tuple = (ClientError, asyncio.TimeoutError),
):
    """Return a tenacity retry decorator configured with the given parameters.

    Args:
        max_retries: Retry attempts in addition to the first attempt.
        retry_delay: Multiplier for the exponential wait.
        backoff_factor: Exponential base for the wait between attempts.
        retry_exceptions: Exception types that trigger a retry.

    Example:
        @retry_async(max_retries=3)
        async def fetch_data():
            ...
    """
    return retry(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=retry_delay, exp_base=backoff_factor),
        retry=retry_if_exception_type(retry_exceptions),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
