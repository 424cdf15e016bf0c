"""
Shared async Redis client.

One process-wide connection pool serves both the per-engineer processing
lease and activity event publishing.
"""

from __future__ import annotations

import logging
import os
from typing import Final

import redis.asyncio as aioredis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_REDIS_URL: Final[str] = "redis://localhost:6379"
REDIS_URL_ENV_VAR: Final[str] = "REDIS_URL"
# Lease and publish calls must fail well inside the lease TTL
REDIS_SOCKET_TIMEOUT_SECONDS: Final[float] = 5.0


class RedisClientState:
    """State container for the shared Redis client to avoid global variables."""

    client: aioredis.Redis | None = None


def get_redis_url() -> str:
    redis_url = os.getenv(REDIS_URL_ENV_VAR, "").strip()
    return redis_url or DEFAULT_REDIS_URL


async def get_shared_redis() -> aioredis.Redis:
    """
    Return the process-wide async Redis client, connecting lazily.

    A client whose ``ping()`` fails is discarded and rebuilt; if the rebuilt
    client cannot ping either, the connection error propagates to the caller.
    """
    if RedisClientState.client is not None:
        try:
            await RedisClientState.client.ping()
        except (RedisConnectionError, RedisTimeoutError, AttributeError, OSError):
            logger.warning("Shared Redis connection lost, reconnecting...")
            RedisClientState.client = None
        else:
            return RedisClientState.client

    client = aioredis.from_url(
        get_redis_url(),
        decode_responses=True,
        socket_connect_timeout=2,
        socket_timeout=REDIS_SOCKET_TIMEOUT_SECONDS,
    )
    await client.ping()
    RedisClientState.client = client
    logger.info("Shared Redis client connected")
    return client


async def close_shared_redis() -> None:
    """Close the shared Redis client (call during app shutdown)."""
    client = RedisClientState.client
    RedisClientState.client = None
    if client is not None:
        await client.aclose()
        logger.info("Shared Redis client closed")
