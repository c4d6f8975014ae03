"""Pure validation rules for bid placement.

Each check raises a ValidationError subclass; none touch the database. The
caller supplies current_highest read under the listing row lock.
"""

from datetime import datetime

from src.rm_common.cents import is_positive_cents
from src.rm_common.errors import (
    BidBelowMinimumError,
    BiddingNotAllowedError,
    BidTooLowError,
    InvalidBidAmountError,
    InvalidBidExpiryError,
    SelfBidError,
)
from src.rm_listing.domain.models import Listing


def validate_amount(amount: object) -> int:
    if not is_positive_cents(amount):
        raise InvalidBidAmountError(amount)
    return amount  # type: ignore[return-value]


def resolve_expiry_days(days: int | None, default_days: int, max_days: int) -> int:
    if days is None:
        return default_days
    if isinstance(days, bool) or not isinstance(days, int) or not 1 <= days <= max_days:
        raise InvalidBidExpiryError(days, max_days)
    return days


def check_biddable(listing: Listing, bidder_id: str, now: datetime) -> None:
    if not listing.allow_bidding:
        raise BiddingNotAllowedError(listing.id)
    if not listing.is_available:
        raise BiddingNotAllowedError(listing.id, f"listing is {listing.status}")
    # Bidding assumes a single unit: one accepted bid sells the whole listing
    if listing.stock_remaining != 1:
        raise BiddingNotAllowedError(listing.id, "bidding requires a single-unit listing")
    if listing.bidding_closed(now):
        raise BiddingNotAllowedError(listing.id, "bidding has closed")
    if listing.seller_id == bidder_id:
        raise SelfBidError()


def check_amount(amount: int, current_highest: int | None, minimum_bid: int | None) -> None:
    """Strictly above every open bid (ties lose) and at least the configured minimum."""
    if current_highest is not None and amount <= current_highest:
        raise BidTooLowError(amount, current_highest)
    if minimum_bid is not None and amount < minimum_bid:
        raise BidBelowMinimumError(amount, minimum_bid)
