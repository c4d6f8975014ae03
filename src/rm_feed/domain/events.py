"""Domain events pushed on the real-time change feed.

Use case: display layers refresh cached listing/bid views when a row changes.
Delivery is at-least-once and best-effort; nothing in the core consumes these.
Transport: Redis Pub/Sub, one channel per listing.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.rm_common.datetime_utils import utc_now
from src.rm_common.enums import ChangeAction

FEED_CHANNEL_PREFIX = "feed:listing:"


def channel_for(listing_id: str) -> str:
    return f"{FEED_CHANNEL_PREFIX}{listing_id}"


@dataclass(frozen=True)
class ChangeEvent:
    entity: str  # "listing" | "bid" | "sale"
    entity_id: str
    listing_id: str
    action: ChangeAction
    payload: dict[str, Any] = field(default_factory=dict)
    occurred_at: datetime = field(default_factory=utc_now)

    def to_json(self) -> str:
        return json.dumps(
            {
                "entity": self.entity,
                "entity_id": self.entity_id,
                "listing_id": self.listing_id,
                "action": self.action.value,
                "payload": self.payload,
                "occurred_at": self.occurred_at.isoformat(),
            },
            default=str,
        )

    @property
    def channel(self) -> str:
        return channel_for(self.listing_id)


def listing_changed(listing_id: str, **payload: Any) -> ChangeEvent:
    return ChangeEvent("listing", listing_id, listing_id, ChangeAction.UPDATE, payload)


def listing_deleted(listing_id: str) -> ChangeEvent:
    return ChangeEvent("listing", listing_id, listing_id, ChangeAction.DELETE)


def bid_inserted(listing_id: str, bid_id: str, **payload: Any) -> ChangeEvent:
    return ChangeEvent("bid", bid_id, listing_id, ChangeAction.INSERT, payload)


def bid_updated(listing_id: str, bid_id: str, **payload: Any) -> ChangeEvent:
    return ChangeEvent("bid", bid_id, listing_id, ChangeAction.UPDATE, payload)


def sale_inserted(listing_id: str, sale_id: str, **payload: Any) -> ChangeEvent:
    return ChangeEvent("sale", sale_id, listing_id, ChangeAction.INSERT, payload)
