"""Pydantic schemas for rm_bidding API requests and responses."""

from pydantic import BaseModel

from src.rm_bidding.domain.models import Bid, SweepResult
from src.rm_common.cents import cents_to_display
from src.rm_ledger.application.schemas import SaleResponse
from src.rm_ledger.domain.models import SaleRecord
from src.rm_listing.application.schemas import ListingResponse
from src.rm_listing.domain.models import Listing


class PlaceBidRequest(BaseModel):
    amount_cents: int
    expires_in_days: int | None = None


class BidResponse(BaseModel):
    id: str
    listing_id: str
    bidder_id: str
    amount_cents: int
    amount_display: str
    status: str
    created_at: str
    expires_at: str | None

    @classmethod
    def from_domain(cls, bid: Bid) -> "BidResponse":
        return cls(
            id=bid.id,
            listing_id=bid.listing_id,
            bidder_id=bid.bidder_id,
            amount_cents=bid.amount_cents,
            amount_display=cents_to_display(bid.amount_cents),
            status=bid.status,
            created_at=bid.created_at.isoformat(),
            expires_at=bid.expires_at.isoformat() if bid.expires_at else None,
        )


class PlaceBidResponse(BaseModel):
    bid: BidResponse
    current_bid_cents: int | None


class BidListResponse(BaseModel):
    listing_id: str
    current_bid_cents: int | None
    items: list[BidResponse]


class AcceptBidResponse(BaseModel):
    bid: BidResponse
    listing: ListingResponse
    sale: SaleResponse
    rejected_bid_ids: list[str]

    @classmethod
    def build(
        cls, bid: Bid, listing: Listing, sale: SaleRecord, rejected_bid_ids: list[str]
    ) -> "AcceptBidResponse":
        return cls(
            bid=BidResponse.from_domain(bid),
            listing=ListingResponse.from_domain(listing),
            sale=SaleResponse.from_domain(sale),
            rejected_bid_ids=rejected_bid_ids,
        )


class SweepResponse(BaseModel):
    listings_pending: list[str]
    listings_expired: list[str]
    bids_expired: list[str]

    @classmethod
    def from_result(cls, result: SweepResult) -> "SweepResponse":
        return cls(
            listings_pending=result.listings_pending,
            listings_expired=result.listings_expired,
            bids_expired=[bid_id for bid_id, _ in result.bids_expired],
        )
