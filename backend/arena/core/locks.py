"""
Per-contest writer locks.

Wager placement for a contest must be a single writer: the pool read, odds
quote, debit and pool update cannot interleave. Inside one process an
asyncio.Lock per contest queues writers; when Redis is configured a Redis
lock extends that across API workers. The pool row is additionally locked
with SELECT ... FOR UPDATE by the executor.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator

from redis.exceptions import LockError, RedisError

from arena.core.config import settings
from arena.core.redis import get_redis_client
from arena.engine.errors import ContestBusyError

logger = logging.getLogger(__name__)

# Entries live while a holder or waiter references the lock, then drop out
_local_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()


def _local_lock(contest_id) -> asyncio.Lock:
    key = str(contest_id)
    lock = _local_locks.get(key)
    if lock is None:
        lock = asyncio.Lock()
        _local_locks[key] = lock
    return lock


@asynccontextmanager
async def contest_lock(contest_id, timeout: float | None = None) -> AsyncIterator[None]:
    timeout = settings.CONTEST_LOCK_TIMEOUT_SECONDS if timeout is None else timeout
    local = _local_lock(contest_id)

    try:
        await asyncio.wait_for(local.acquire(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise ContestBusyError("Contest is busy, please retry") from e

    try:
        redis = get_redis_client()
        if redis is None:
            yield
            return

        remote = redis.lock(
            f"lock:contest:{contest_id}",
            timeout=timeout,
            blocking_timeout=timeout,
        )
        try:
            acquired = await remote.acquire()
        except RedisError as e:
            logger.error(f"Redis lock for contest {contest_id} failed: {e}")
            raise ContestBusyError("Contest lock unavailable, please retry") from e
        if not acquired:
            raise ContestBusyError("Contest is busy, please retry")

        try:
            yield
        finally:
            try:
                await remote.release()
            except LockError:
                logger.warning(f"Redis lock for contest {contest_id} expired before release")
    finally:
        local.release()
