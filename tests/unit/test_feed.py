"""Change feed: event encoding, post-commit publish, listing cache and the WebSocket relay."""

import asyncio
import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError
from starlette.websockets import WebSocketDisconnect

from src.rm_common.enums import ChangeAction
from src.rm_feed.domain.events import (
    ChangeEvent,
    bid_inserted,
    channel_for,
    listing_deleted,
    sale_inserted,
)
from src.rm_feed.infrastructure.cache import ListingCache, cache_key
from src.rm_feed.infrastructure.publisher import FeedPublisher
from src.rm_gateway.auth.jwt_handler import create_access_token, create_refresh_token

AT = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class TestChangeEvent:
    def test_json_shape(self) -> None:
        event = ChangeEvent("bid", "B1", "L1", ChangeAction.INSERT, {"amount_cents": 150}, AT)
        assert json.loads(event.to_json()) == {
            "entity": "bid",
            "entity_id": "B1",
            "listing_id": "L1",
            "action": "INSERT",
            "payload": {"amount_cents": 150},
            "occurred_at": "2026-03-01T12:00:00+00:00",
        }

    def test_channel_is_per_listing(self) -> None:
        assert bid_inserted("L1", "B1").channel == channel_for("L1") == "feed:listing:L1"
        assert sale_inserted("L1", "S1").channel == "feed:listing:L1"

    def test_delete_has_no_payload(self) -> None:
        event = listing_deleted("L1")
        assert event.action == ChangeAction.DELETE
        assert event.payload == {}


class TestFeedPublisher:
    async def test_publishes_each_event_then_invalidates_once(self) -> None:
        redis = AsyncMock()
        cache = AsyncMock(spec=ListingCache)
        publisher = FeedPublisher(redis, cache)

        await publisher.publish([bid_inserted("L1", "B1"), sale_inserted("L1", "S1")])

        assert redis.publish.await_count == 2
        assert redis.publish.await_args_list[0].args[0] == "feed:listing:L1"
        cache.invalidate.assert_awaited_once_with("L1")

    async def test_redis_failure_is_swallowed(self) -> None:
        redis = AsyncMock()
        redis.publish.side_effect = RedisConnectionError("down")
        cache = AsyncMock(spec=ListingCache)

        await FeedPublisher(redis, cache).publish([bid_inserted("L1", "B1")])

        cache.invalidate.assert_awaited_once_with("L1")

    async def test_empty_batch_is_noop(self) -> None:
        redis = AsyncMock()
        cache = AsyncMock(spec=ListingCache)
        await FeedPublisher(redis, cache).publish([])
        redis.publish.assert_not_awaited()
        cache.invalidate.assert_not_awaited()


class TestListingCache:
    async def test_round_trip_with_ttl(self) -> None:
        redis = AsyncMock()
        cache = ListingCache(redis, ttl_seconds=30)

        await cache.set("L1", {"id": "L1", "price_cents": 100})

        key, raw = redis.set.await_args.args
        assert key == cache_key("L1") == "cache:listing:L1"
        assert redis.set.await_args.kwargs == {"ex": 30}

        redis.get.return_value = raw
        assert await cache.get("L1") == {"id": "L1", "price_cents": 100}

    async def test_miss(self) -> None:
        redis = AsyncMock()
        redis.get.return_value = None
        assert await ListingCache(redis, ttl_seconds=30).get("L1") is None

    async def test_zero_ttl_disables_writes(self) -> None:
        redis = AsyncMock()
        await ListingCache(redis, ttl_seconds=0).set("L1", {"id": "L1"})
        redis.set.assert_not_awaited()

    async def test_read_failure_is_a_miss(self) -> None:
        redis = AsyncMock()
        redis.get.side_effect = RedisConnectionError("down")
        assert await ListingCache(redis, ttl_seconds=30).get("L1") is None

    async def test_invalidate_failure_is_logged_only(self) -> None:
        redis = AsyncMock()
        redis.delete.side_effect = RedisConnectionError("down")
        await ListingCache(redis, ttl_seconds=30).invalidate("L1")
        redis.delete.assert_awaited_once_with("cache:listing:L1")


class _FakePubSub:
    def __init__(self, messages: list[str]) -> None:
        self._messages = list(messages)
        self.subscribe = AsyncMock()
        self.unsubscribe = AsyncMock()
        self.aclose = AsyncMock()

    async def get_message(self, ignore_subscribe_messages: bool, timeout: float):  # type: ignore[no-untyped-def]
        if self._messages:
            return {"data": self._messages.pop(0)}
        await asyncio.sleep(0.01)
        return None


class TestListingFeedSocket:
    @pytest.fixture
    def ws_client(self, monkeypatch: pytest.MonkeyPatch):  # type: ignore[no-untyped-def]
        from src.main import app
        from src.rm_feed.api import router as feed_api

        pubsub = _FakePubSub([bid_inserted("L1", "B1").to_json()])
        redis = MagicMock()
        redis.pubsub.return_value = pubsub
        monkeypatch.setattr(feed_api, "get_redis", AsyncMock(return_value=redis))
        return TestClient(app), pubsub

    def test_valid_token_relays_listing_channel(self, ws_client) -> None:  # type: ignore[no-untyped-def]
        client, pubsub = ws_client
        token = create_access_token("alice", "buyer")

        with client.websocket_connect(f"/ws/listings/L1?token={token}") as ws:
            event = json.loads(ws.receive_text())

        assert event["entity_id"] == "B1"
        pubsub.subscribe.assert_awaited_once_with("feed:listing:L1")

    def test_missing_token_is_refused(self, ws_client) -> None:  # type: ignore[no-untyped-def]
        client, pubsub = ws_client
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect("/ws/listings/L1"):
                pass
        assert exc.value.code == 1008
        pubsub.subscribe.assert_not_awaited()

    def test_refresh_token_is_refused(self, ws_client) -> None:  # type: ignore[no-untyped-def]
        client, _ = ws_client
        token = create_refresh_token("alice")
        with pytest.raises(WebSocketDisconnect) as exc:
            with client.websocket_connect(f"/ws/listings/L1?token={token}"):
                pass
        assert exc.value.code == 1008
