"""ListingCache: Redis cache-aside for listing display payloads.

Display only: check-then-act logic always re-reads the listing row inside its
own transaction and never consults this cache.
"""

import json
import logging
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings
from src.rm_common.redis_client import get_redis

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "cache:listing:"


def cache_key(listing_id: str) -> str:
    return f"{CACHE_KEY_PREFIX}{listing_id}"


class ListingCache:
    def __init__(self, redis: aioredis.Redis | None = None, ttl_seconds: int | None = None) -> None:
        self._redis = redis
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.LISTING_CACHE_TTL_SECONDS

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def get(self, listing_id: str) -> dict[str, Any] | None:
        try:
            raw = await (await self._client()).get(cache_key(listing_id))
        except RedisError as e:
            logger.warning("Listing cache read failed for %s: %s", listing_id, e)
            return None
        return json.loads(raw) if raw else None

    async def set(self, listing_id: str, data: dict[str, Any]) -> None:
        if self._ttl <= 0:
            return
        try:
            await (await self._client()).set(
                cache_key(listing_id), json.dumps(data, default=str), ex=self._ttl
            )
        except RedisError as e:
            logger.warning("Listing cache write failed for %s: %s", listing_id, e)

    async def invalidate(self, listing_id: str) -> None:
        try:
            await (await self._client()).delete(cache_key(listing_id))
        except RedisError as e:
            logger.warning("Listing cache invalidate failed for %s: %s", listing_id, e)
