"""Pydantic schemas for rm_listing API requests and responses.

Cursor format for listings (VARCHAR PK, not sequential):
  {"ts": "<created_at ISO>", "id": "<listing_id>"}
  Encoded as Base64 JSON string.

Prices are validated as positive cents in the service layer so a bad price
surfaces with the listing error code rather than a generic schema error.
"""

import base64
import json
from datetime import date, datetime, time, timezone

from pydantic import BaseModel, Field, field_validator

from src.rm_common.cents import cents_to_display
from src.rm_ledger.domain.models import SaleRecord
from src.rm_listing.domain.models import Listing

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_listing: Listing) -> str:
    """Encode composite cursor from last listing in page."""
    payload = {
        "ts": last_listing.created_at.isoformat(),
        "id": last_listing.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, listing_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode()).decode())
        return data["ts"], data["id"]
    except Exception:
        return None, None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    restaurant_name: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    cuisine: str = Field(..., min_length=1, max_length=64)
    reservation_date: date
    reservation_time: time
    party_size: int = Field(..., ge=1)
    description: str | None = None
    image_url: str | None = Field(None, max_length=500)
    price_cents: int
    original_price_cents: int
    stock_remaining: int = 1
    allow_bidding: bool = False
    minimum_bid_cents: int | None = None
    bid_end_time: datetime | None = None

    @field_validator("bid_end_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class UpdateAskRequest(BaseModel):
    price_cents: int


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    id: str
    seller_id: str
    restaurant_name: str
    location: str
    cuisine: str
    reservation_date: str
    reservation_time: str
    party_size: int
    description: str | None
    image_url: str | None
    price_cents: int
    price_display: str
    original_price_cents: int
    status: str
    stock_remaining: int
    allow_bidding: bool
    minimum_bid_cents: int | None
    current_bid_cents: int | None
    bid_end_time: str | None
    last_sale_price_cents: int | None
    last_sale_date: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingResponse":
        return cls(
            id=listing.id,
            seller_id=listing.seller_id,
            restaurant_name=listing.restaurant_name,
            location=listing.location,
            cuisine=listing.cuisine,
            reservation_date=listing.reservation_date.isoformat(),
            reservation_time=listing.reservation_time.strftime("%H:%M"),
            party_size=listing.party_size,
            description=listing.description,
            image_url=listing.image_url,
            price_cents=listing.price_cents,
            price_display=cents_to_display(listing.price_cents),
            original_price_cents=listing.original_price_cents,
            status=listing.status,
            stock_remaining=listing.stock_remaining,
            allow_bidding=listing.allow_bidding,
            minimum_bid_cents=listing.minimum_bid_cents,
            current_bid_cents=listing.current_bid_cents,
            bid_end_time=listing.bid_end_time.isoformat() if listing.bid_end_time else None,
            last_sale_price_cents=listing.last_sale_price_cents,
            last_sale_date=listing.last_sale_date.isoformat() if listing.last_sale_date else None,
            created_at=listing.created_at.isoformat(),
            updated_at=listing.updated_at.isoformat(),
        )


class ListingListResponse(BaseModel):
    items: list[ListingResponse]
    next_cursor: str | None
    has_more: bool


class BuyNowResponse(BaseModel):
    listing: ListingResponse
    sale_id: str
    price_paid_cents: int
    rejected_bid_ids: list[str]

    @classmethod
    def build(
        cls, listing: Listing, sale: SaleRecord, rejected_bid_ids: list[str]
    ) -> "BuyNowResponse":
        return cls(
            listing=ListingResponse.from_domain(listing),
            sale_id=sale.id,
            price_paid_cents=sale.price_cents,
            rejected_bid_ids=rejected_bid_ids,
        )
