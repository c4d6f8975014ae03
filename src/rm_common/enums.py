"""Global enums: must match DB CHECK constraints exactly (see alembic/versions)."""

from enum import Enum


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    PENDING = "pending"
    SOLD = "sold"
    EXPIRED = "expired"


class BidStatus(str, Enum):
    OPEN = "open"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"


class UserRole(str, Enum):
    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"


class RateLimitAction(str, Enum):
    """Action tags stored in rate_limits.action_type."""
    PLACE_BID = "place_bid"


class ChangeAction(str, Enum):
    """Kinds of row change pushed on the real-time feed."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
