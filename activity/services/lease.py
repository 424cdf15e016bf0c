"""
Per-engineer processing lease backed by Redis.

Two runs (the periodic pass and an ad-hoc trigger) must never segment the
same engineer concurrently, or both would read the same unprocessed samples
and write duplicate events. The lease is ``SET key token NX EX ttl``; release
deletes the key only if it still holds our token, so an expired-and-retaken
lease is never released by the old holder.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from config import ENGINEER_LEASE_TTL_SECONDS
from core.exceptions import LeaseUnavailableError
from core.redis import get_shared_redis

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

logger = logging.getLogger(__name__)

LEASE_KEY_PREFIX = "locks:activity_engineer"

_RELEASE_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
  return redis.call('del', KEYS[1])
end
return 0
"""


class EngineerLease:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[Any]] = get_shared_redis,
        *,
        ttl_seconds: int = ENGINEER_LEASE_TTL_SECONDS,
    ) -> None:
        self._redis_factory = redis_factory
        self._ttl_seconds = max(30, int(ttl_seconds))

    @staticmethod
    def key_for(engineer_id: int) -> str:
        return f"{LEASE_KEY_PREFIX}:{engineer_id}"

    async def acquire(self, engineer_id: int) -> str | None:
        """Return a lease token, or None if another run holds the engineer.

        Raises:
            LeaseUnavailableError: If Redis cannot be reached.
        """
        token = uuid.uuid4().hex
        try:
            redis = await self._redis_factory()
            acquired = await redis.set(
                self.key_for(engineer_id),
                token,
                ex=self._ttl_seconds,
                nx=True,
            )
        except Exception as e:
            msg = f"Lease backend unavailable for engineer {engineer_id}"
            raise LeaseUnavailableError(msg, {"engineer_id": engineer_id}) from e
        return token if acquired else None

    async def release(self, engineer_id: int, token: str) -> None:
        try:
            redis = await self._redis_factory()
            await redis.eval(_RELEASE_SCRIPT, 1, self.key_for(engineer_id), token)
        except Exception:
            # The TTL frees the key eventually
            logger.exception("Failed to release lease for engineer %s", engineer_id)

    @asynccontextmanager
    async def hold(self, engineer_id: int) -> AsyncIterator[bool]:
        """Yield True while holding the lease, or False if it is taken."""
        token = await self.acquire(engineer_id)
        if token is None:
            yield False
            return
        try:
            yield True
        finally:
            await self.release(engineer_id, token)
