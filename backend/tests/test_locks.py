"""
Tests for per-contest writer locks
"""

import asyncio
import gc
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from redis.exceptions import LockError, RedisError

from arena.core import locks
from arena.core.locks import contest_lock
from arena.engine.errors import ContestBusyError


def _redis_with_lock(acquire=None, release=None):
    remote = MagicMock()
    remote.acquire = acquire or AsyncMock(return_value=True)
    remote.release = release or AsyncMock()
    redis = MagicMock()
    redis.lock.return_value = remote
    return redis, remote


@pytest.mark.asyncio
async def test_serialises_writers():
    contest_id = uuid4()
    order = []

    async def writer(name):
        async with contest_lock(contest_id):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    await asyncio.gather(writer("first"), writer("second"))
    assert order == ["first-in", "first-out", "second-in", "second-out"]


@pytest.mark.asyncio
async def test_times_out_when_held():
    contest_id = uuid4()
    async with contest_lock(contest_id):
        with pytest.raises(ContestBusyError):
            async with contest_lock(contest_id, timeout=0.01):
                pass


@pytest.mark.asyncio
async def test_other_contests_are_independent():
    async with contest_lock(uuid4()):
        async with contest_lock(uuid4(), timeout=0.01):
            pass


@pytest.mark.asyncio
async def test_idle_lock_is_dropped():
    contest_id = uuid4()
    async with contest_lock(contest_id):
        assert str(contest_id) in locks._local_locks
    gc.collect()
    assert str(contest_id) not in locks._local_locks


@pytest.mark.asyncio
async def test_waiter_shares_the_held_lock():
    contest_id = uuid4()
    seen = []

    async def waiter():
        async with contest_lock(contest_id):
            seen.append(locks._local_locks[str(contest_id)])

    async with contest_lock(contest_id):
        held = locks._local_locks[str(contest_id)]
        task = asyncio.create_task(waiter())
        await asyncio.sleep(0.01)
        gc.collect()
        assert locks._local_locks[str(contest_id)] is held
    await task

    assert seen == [held]


@pytest.mark.asyncio
async def test_redis_lock_taken_and_released(monkeypatch):
    redis, remote = _redis_with_lock()
    monkeypatch.setattr(locks, "get_redis_client", lambda: redis)
    contest_id = uuid4()

    async with contest_lock(contest_id):
        pass

    assert redis.lock.call_args.args[0] == f"lock:contest:{contest_id}"
    remote.acquire.assert_awaited_once()
    remote.release.assert_awaited_once()


@pytest.mark.asyncio
async def test_redis_lock_not_acquired(monkeypatch):
    redis, _ = _redis_with_lock(acquire=AsyncMock(return_value=False))
    monkeypatch.setattr(locks, "get_redis_client", lambda: redis)
    contest_id = uuid4()

    with pytest.raises(ContestBusyError):
        async with contest_lock(contest_id):
            pass

    # local lock is released for the next writer
    monkeypatch.setattr(locks, "get_redis_client", lambda: None)
    async with contest_lock(contest_id, timeout=0.01):
        pass


@pytest.mark.asyncio
async def test_redis_down(monkeypatch):
    redis, _ = _redis_with_lock(acquire=AsyncMock(side_effect=RedisError("down")))
    monkeypatch.setattr(locks, "get_redis_client", lambda: redis)

    with pytest.raises(ContestBusyError):
        async with contest_lock(uuid4()):
            pass


@pytest.mark.asyncio
async def test_expired_redis_lock_does_not_raise(monkeypatch):
    redis, _ = _redis_with_lock(release=AsyncMock(side_effect=LockError("expired")))
    monkeypatch.setattr(locks, "get_redis_client", lambda: redis)

    async with contest_lock(uuid4()):
        pass
