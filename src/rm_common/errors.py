"""Unified error codes and custom exceptions.

Every failure the core can report falls into one of five categories, each a
direct subclass of AppError so routers and callers can branch on the category
without knowing the concrete error:

  ValidationError     422  bad or rule-violating input, never retried
  NotFoundError       404  referenced row does not exist, terminal
  AuthorizationError  403  actor may not perform the mutation
  ConflictError       409  concurrent mutation detected, retry once
  RateLimitedError    429  retry after `retry_after_seconds`

Error code ranges:
  1xxx: Auth/User
  2xxx: Listing
  3xxx: Bid
  9xxx: System
"""

from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- Categories ---

class ValidationError(AppError):
    def __init__(self, code: int, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(code, message, 422, details)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class AuthorizationError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 403)


class ConflictError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


class RateLimitedError(AppError):
    def __init__(self, retry_after_seconds: int, action_type: str = "place_bid") -> None:
        self.retry_after_seconds = retry_after_seconds
        self.action_type = action_type
        super().__init__(
            9001,
            f"Rate limit exceeded, retry in {retry_after_seconds}s",
            429,
            {"retry_after_seconds": retry_after_seconds, "action_type": action_type},
        )


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(1006, f"User not found: {user_id}")


class RoleRequiredError(AuthorizationError):
    def __init__(self, role: str) -> None:
        super().__init__(1007, f"Role required: {role}")


# --- 2xxx: Listing ---

class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2001, f"Listing not found: {listing_id}")


class ListingNotAvailableError(ValidationError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(
            2002,
            f"Listing {listing_id} is {status}",
            {"listing_id": listing_id, "status": status},
        )


class NotListingOwnerError(AuthorizationError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2003, f"Only the seller may modify listing {listing_id}")


class OutOfStockError(ValidationError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2004, f"Listing {listing_id} has no stock remaining")


class InvalidPriceError(ValidationError):
    def __init__(self, field: str, value: object) -> None:
        super().__init__(2005, f"Invalid {field}: {value}", {"field": field})


class ListingNotDeletableError(ValidationError):
    def __init__(self, listing_id: str, status: str) -> None:
        super().__init__(2006, f"Listing {listing_id} in status {status} cannot be deleted")


class SelfPurchaseError(ValidationError):
    def __init__(self) -> None:
        super().__init__(2007, "Sellers cannot buy their own listing")


class InvalidStatusTransitionError(ValidationError):
    def __init__(self, from_status: str, to_status: str) -> None:
        super().__init__(
            2008,
            f"Listing cannot move from {from_status} to {to_status}",
            {"from": from_status, "to": to_status},
        )


class InvalidListingError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(2009, f"Invalid listing: {detail}")


class ListingNoLongerAvailableError(ConflictError):
    def __init__(self, listing_id: str) -> None:
        super().__init__(2010, f"Listing {listing_id} is no longer available")


# --- 3xxx: Bid ---

class InvalidBidAmountError(ValidationError):
    def __init__(self, amount: object) -> None:
        super().__init__(3001, f"Bid amount must be a positive whole number of cents, got {amount!r}")


class BiddingNotAllowedError(ValidationError):
    def __init__(self, listing_id: str, reason: str = "bidding is disabled") -> None:
        super().__init__(3002, f"Cannot bid on listing {listing_id}: {reason}")


class BidTooLowError(ValidationError):
    def __init__(self, amount: int, current_highest: int) -> None:
        super().__init__(
            3003,
            f"Bid {amount} must exceed the current highest bid {current_highest}",
            {"amount_cents": amount, "current_highest_cents": current_highest},
        )


class BidBelowMinimumError(ValidationError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(
            3004,
            f"Bid {amount} is below the minimum bid {minimum}",
            {"amount_cents": amount, "minimum_bid_cents": minimum},
        )


class BidNotFoundError(NotFoundError):
    def __init__(self, bid_id: str) -> None:
        super().__init__(3005, f"Bid not found: {bid_id}")


class BidNotOpenError(ValidationError):
    def __init__(self, bid_id: str, status: str) -> None:
        super().__init__(3006, f"Bid {bid_id} in status {status} cannot be accepted")


class SelfBidError(ValidationError):
    def __init__(self) -> None:
        super().__init__(3007, "Sellers cannot bid on their own listing")


class InvalidBidExpiryError(ValidationError):
    def __init__(self, days: object, max_days: int) -> None:
        super().__init__(3008, f"Bid expiry must be 1-{max_days} days, got {days!r}")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class ConcurrentModificationError(ConflictError):
    def __init__(self, detail: str = "Row was modified concurrently") -> None:
        super().__init__(9003, detail)
