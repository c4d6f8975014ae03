"""Shared redis.asyncio connection for the change feed and the listing cache.

Redis is never consulted for invariant checks: bid ordering, stock and rate
limits all live in PostgreSQL. Losing Redis only degrades the feed and turns
every cached read into a DB read.
"""

import redis.asyncio as aioredis

from config.settings import settings

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            health_check_interval=30,
        )
    return _redis_pool


async def ping_redis() -> None:
    """Startup probe; raises redis ConnectionError when the server is unreachable."""
    await (await get_redis()).ping()


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
