"""Error taxonomy: every concrete error sits under exactly one category."""

import pytest

from src.rm_common.errors import (
    AppError,
    AuthorizationError,
    BidBelowMinimumError,
    BidNotFoundError,
    BidTooLowError,
    ConcurrentModificationError,
    ConflictError,
    InvalidBidAmountError,
    ListingNoLongerAvailableError,
    ListingNotFoundError,
    NotFoundError,
    NotListingOwnerError,
    OutOfStockError,
    RateLimitedError,
    RoleRequiredError,
    SelfBidError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error", "category", "status"),
    [
        (InvalidBidAmountError(-5), ValidationError, 422),
        (BidTooLowError(100, 150), ValidationError, 422),
        (BidBelowMinimumError(90, 100), ValidationError, 422),
        (OutOfStockError("L1"), ValidationError, 422),
        (SelfBidError(), ValidationError, 422),
        (ListingNotFoundError("L1"), NotFoundError, 404),
        (BidNotFoundError("B1"), NotFoundError, 404),
        (NotListingOwnerError("L1"), AuthorizationError, 403),
        (RoleRequiredError("admin"), AuthorizationError, 403),
        (ConcurrentModificationError(), ConflictError, 409),
        (ListingNoLongerAvailableError("L1"), ConflictError, 409),
    ],
)
def test_category_and_status(error: AppError, category: type, status: int) -> None:
    assert isinstance(error, category)
    assert error.http_status == status


def test_rate_limited_carries_retry_after() -> None:
    err = RateLimitedError(42)
    assert err.http_status == 429
    assert err.retry_after_seconds == 42
    assert err.details == {"retry_after_seconds": 42, "action_type": "place_bid"}


def test_bid_too_low_details_expose_current_highest() -> None:
    err = BidTooLowError(150, 150)
    assert err.code == 3003
    assert err.details == {"amount_cents": 150, "current_highest_cents": 150}


def test_codes_are_unique() -> None:
    errors = [
        InvalidBidAmountError(0), BidTooLowError(1, 2), BidBelowMinimumError(1, 2),
        OutOfStockError("x"), SelfBidError(), ListingNotFoundError("x"),
        BidNotFoundError("x"), NotListingOwnerError("x"), RoleRequiredError("x"),
        ConcurrentModificationError(), ListingNoLongerAvailableError("x"), RateLimitedError(1),
    ]
    codes = [e.code for e in errors]
    assert len(codes) == len(set(codes))
