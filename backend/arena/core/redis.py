"""
Shared Redis client accessor.

Services, the live odds router and the lifespan hook all import the client
from here so there is exactly one connection pool per process.
"""

import redis.asyncio as aioredis
from typing import Optional
import logging

logger = logging.getLogger(__name__)

_redis_client: Optional[aioredis.Redis] = None


def odds_cache_key(contest_id) -> str:
    return f"odds:{contest_id}"


def odds_channel(contest_id) -> str:
    return f"odds_updates:{contest_id}"


async def init_redis(url: str) -> aioredis.Redis:
    """Initialize the shared Redis connection. Called once during app lifespan startup."""
    global _redis_client
    client = aioredis.from_url(url, encoding="utf-8", decode_responses=False)
    await client.ping()
    _redis_client = client
    return _redis_client


def get_redis_client() -> Optional[aioredis.Redis]:
    """Get the shared Redis client. Returns None if not initialized."""
    return _redis_client


async def close_redis() -> None:
    """Close the shared Redis connection. Called during app lifespan shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
