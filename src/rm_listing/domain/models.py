"""Domain models for rm_listing: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import date, datetime, time

from src.rm_common.enums import ListingStatus


@dataclass
class Listing:
    """A sellable reservation slot.

    Descriptive fields (restaurant_name .. image_url) are display-only; the
    lifecycle logic only reads price, status, stock and the bidding fields.
    """

    id: str
    seller_id: str
    restaurant_name: str
    location: str
    cuisine: str
    reservation_date: date
    reservation_time: time
    party_size: int
    description: str | None
    image_url: str | None
    price_cents: int
    original_price_cents: int
    status: str
    stock_remaining: int
    allow_bidding: bool
    minimum_bid_cents: int | None
    current_bid_cents: int | None
    bid_end_time: datetime | None
    last_sale_price_cents: int | None
    last_sale_date: datetime | None
    created_at: datetime
    updated_at: datetime

    @property
    def is_available(self) -> bool:
        return self.status == ListingStatus.AVAILABLE.value

    def bidding_closed(self, now: datetime) -> bool:
        return self.bid_end_time is not None and self.bid_end_time <= now


@dataclass
class ListingFilters:
    status: str | None = None
    cuisine: str | None = None
    location: str | None = None
    seller_id: str | None = None
    min_price_cents: int | None = None
    max_price_cents: int | None = None
