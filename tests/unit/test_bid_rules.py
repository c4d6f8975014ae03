"""Pure bid placement rules."""

from dataclasses import replace
from datetime import UTC, date, datetime, time, timedelta

import pytest

from src.rm_bidding.domain import rules
from src.rm_common.errors import (
    BidBelowMinimumError,
    BiddingNotAllowedError,
    BidTooLowError,
    InvalidBidAmountError,
    InvalidBidExpiryError,
    SelfBidError,
)
from src.rm_listing.domain.models import Listing

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _listing(**overrides: object) -> Listing:
    base = Listing(
        id="L1", seller_id="seller", restaurant_name="Noma", location="Copenhagen",
        cuisine="Nordic", reservation_date=date(2026, 4, 1), reservation_time=time(19, 30),
        party_size=2, description=None, image_url=None, price_cents=30000,
        original_price_cents=25000, status="available", stock_remaining=1,
        allow_bidding=True, minimum_bid_cents=100, current_bid_cents=None,
        bid_end_time=NOW + timedelta(days=1), last_sale_price_cents=None,
        last_sale_date=None, created_at=NOW, updated_at=NOW,
    )
    return replace(base, **overrides)


class TestValidateAmount:
    @pytest.mark.parametrize("amount", [0, -100, 1.5, "150", None, True])
    def test_rejects_non_positive_or_non_integer(self, amount: object) -> None:
        with pytest.raises(InvalidBidAmountError):
            rules.validate_amount(amount)

    def test_accepts_positive_cents(self) -> None:
        assert rules.validate_amount(150) == 150


class TestResolveExpiryDays:
    def test_default_when_omitted(self) -> None:
        assert rules.resolve_expiry_days(None, 7, 30) == 7

    @pytest.mark.parametrize("days", [0, 31, -1])
    def test_out_of_range(self, days: int) -> None:
        with pytest.raises(InvalidBidExpiryError):
            rules.resolve_expiry_days(days, 7, 30)

    def test_bounds_inclusive(self) -> None:
        assert rules.resolve_expiry_days(1, 7, 30) == 1
        assert rules.resolve_expiry_days(30, 7, 30) == 30


class TestCheckBiddable:
    def test_open_listing_passes(self) -> None:
        rules.check_biddable(_listing(), "buyer", NOW)

    def test_bidding_disabled(self) -> None:
        with pytest.raises(BiddingNotAllowedError):
            rules.check_biddable(_listing(allow_bidding=False), "buyer", NOW)

    @pytest.mark.parametrize("status", ["pending", "sold", "expired"])
    def test_not_available(self, status: str) -> None:
        with pytest.raises(BiddingNotAllowedError):
            rules.check_biddable(_listing(status=status), "buyer", NOW)

    def test_multi_unit_listing_cannot_take_bids(self) -> None:
        with pytest.raises(BiddingNotAllowedError):
            rules.check_biddable(_listing(stock_remaining=3), "buyer", NOW)

    def test_deadline_passed(self) -> None:
        with pytest.raises(BiddingNotAllowedError):
            rules.check_biddable(_listing(bid_end_time=NOW - timedelta(seconds=1)), "buyer", NOW)

    def test_seller_cannot_bid(self) -> None:
        with pytest.raises(SelfBidError):
            rules.check_biddable(_listing(), "seller", NOW)


class TestCheckAmount:
    def test_below_minimum(self) -> None:
        with pytest.raises(BidBelowMinimumError):
            rules.check_amount(90, None, 100)

    def test_tie_with_highest_rejected(self) -> None:
        with pytest.raises(BidTooLowError):
            rules.check_amount(150, 150, 100)

    def test_below_highest_rejected(self) -> None:
        with pytest.raises(BidTooLowError):
            rules.check_amount(149, 150, None)

    def test_minimum_itself_is_allowed(self) -> None:
        rules.check_amount(100, None, 100)

    def test_strictly_higher_passes(self) -> None:
        rules.check_amount(151, 150, 100)
