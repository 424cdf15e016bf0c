from __future__ import annotations

import pytest
from fakes import FakeRedis

from activity.services.lease import EngineerLease
from core.exceptions import LeaseUnavailableError


def _lease(redis: FakeRedis) -> EngineerLease:
    async def _factory():
        return redis

    return EngineerLease(_factory, ttl_seconds=60)


@pytest.mark.asyncio
async def test_second_acquire_is_refused_until_release() -> None:
    redis = FakeRedis()
    lease = _lease(redis)

    token = await lease.acquire(3)
    assert token is not None
    assert await lease.acquire(3) is None
    assert await lease.acquire(4) is not None

    await lease.release(3, token)
    assert await lease.acquire(3) is not None


@pytest.mark.asyncio
async def test_release_with_stale_token_keeps_new_holder() -> None:
    redis = FakeRedis()
    lease = _lease(redis)
    key = EngineerLease.key_for(3)
    redis.store[key] = "someone-else"

    await lease.release(3, "my-old-token")

    assert redis.store[key] == "someone-else"


@pytest.mark.asyncio
async def test_hold_yields_false_when_taken_and_true_otherwise() -> None:
    redis = FakeRedis()
    lease = _lease(redis)

    async with lease.hold(3) as held:
        assert held is True
        async with lease.hold(3) as nested:
            assert nested is False
        assert EngineerLease.key_for(3) in redis.store

    assert redis.store == {}


@pytest.mark.asyncio
async def test_hold_releases_on_error() -> None:
    redis = FakeRedis()
    lease = _lease(redis)

    with pytest.raises(RuntimeError):
        async with lease.hold(3):
            raise RuntimeError("boom")

    assert redis.store == {}


@pytest.mark.asyncio
async def test_unreachable_backend_raises_lease_unavailable() -> None:
    lease = _lease(FakeRedis(fail=True))

    with pytest.raises(LeaseUnavailableError):
        await lease.acquire(3)
