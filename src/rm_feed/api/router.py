"""rm_feed WebSocket endpoint.

WS /ws/listings/{listing_id}?token=<access token>   relays ChangeEvents for one listing.

A missing or invalid access token closes the handshake with 1008.

Display clients use the messages as refresh hints only. The socket is
server-push; anything the client sends is ignored.
"""

import asyncio
import contextlib
import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from redis.exceptions import RedisError

from src.rm_common.errors import InvalidCredentialsError
from src.rm_common.redis_client import get_redis
from src.rm_feed.domain.events import channel_for
from src.rm_gateway.auth.jwt_handler import decode_token

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feed"])


async def _drain_client(websocket: WebSocket) -> None:
    # Returns when the client disconnects
    with contextlib.suppress(WebSocketDisconnect):
        while True:
            await websocket.receive_text()


@router.websocket("/ws/listings/{listing_id}")
async def listing_feed(
    websocket: WebSocket,
    listing_id: str,
    token: str | None = Query(None),
) -> None:
    # Handshake carries no Authorization header; the access token comes in the query
    try:
        decode_token(token or "", expected_type="access")
    except InvalidCredentialsError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    await websocket.accept()
    redis = await get_redis()
    pubsub = redis.pubsub()
    channel = channel_for(listing_id)
    await pubsub.subscribe(channel)
    receiver = asyncio.create_task(_drain_client(websocket))
    try:
        while not receiver.done():
            message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
            if message is None:
                continue
            await websocket.send_text(message["data"])
    except WebSocketDisconnect:
        pass
    except RedisError as e:
        logger.warning("Feed relay for %s stopped: %s", listing_id, e)
        await websocket.close(code=1011)
    finally:
        receiver.cancel()
        await pubsub.unsubscribe(channel)
        await pubsub.aclose()
