"""Domain models for rm_bidding: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.rm_common.enums import BidStatus


@dataclass
class Bid:
    id: str
    listing_id: str
    bidder_id: str
    amount_cents: int
    status: str
    created_at: datetime
    expires_at: datetime | None
    updated_at: datetime

    @property
    def is_open(self) -> bool:
        return self.status == BidStatus.OPEN.value


@dataclass
class SweepResult:
    """Counts from one expiry sweep pass. A second pass over the same state is all zeros."""

    listings_pending: list[str] = field(default_factory=list)
    listings_expired: list[str] = field(default_factory=list)
    bids_expired: list[tuple[str, str]] = field(default_factory=list)  # (bid_id, listing_id)

    @property
    def is_empty(self) -> bool:
        return not (self.listings_pending or self.listings_expired or self.bids_expired)
