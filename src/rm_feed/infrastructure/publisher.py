"""FeedPublisher: post-commit fan-out of ChangeEvents over Redis Pub/Sub.

Called only after the owning transaction has committed. A Redis failure is
logged and swallowed: the write already succeeded and the feed is allowed to
drop notifications.
"""

import logging
from collections.abc import Iterable
from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.rm_common.redis_client import get_redis
from src.rm_feed.domain.events import ChangeEvent
from src.rm_feed.infrastructure.cache import ListingCache

logger = logging.getLogger(__name__)


class FeedPublisherProtocol(Protocol):
    async def publish(self, events: Iterable[ChangeEvent]) -> None: ...


class FeedPublisher:
    def __init__(
        self, redis: aioredis.Redis | None = None, cache: ListingCache | None = None
    ) -> None:
        self._redis = redis
        self._cache = cache or ListingCache(redis)

    async def _client(self) -> aioredis.Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    async def publish(self, events: Iterable[ChangeEvent]) -> None:
        touched: set[str] = set()
        for event in events:
            touched.add(event.listing_id)
            try:
                await (await self._client()).publish(event.channel, event.to_json())
            except RedisError as e:
                logger.warning(
                    "Feed publish failed channel=%s entity=%s/%s: %s",
                    event.channel, event.entity, event.entity_id, e,
                )
        for listing_id in touched:
            await self._cache.invalidate(listing_id)
