"""Listing status state machine.

    available ──buy-now / accept──────────► sold
        │  └──sweep, no open bid───────────► expired
        └──sweep, open bid──► pending ──accept──► sold

sold and expired are terminal.
"""

from src.rm_common.enums import ListingStatus
from src.rm_common.errors import InvalidStatusTransitionError

_A = ListingStatus.AVAILABLE.value
_P = ListingStatus.PENDING.value
_S = ListingStatus.SOLD.value
_E = ListingStatus.EXPIRED.value

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    _A: frozenset({_P, _S, _E}),
    _P: frozenset({_S}),
    _S: frozenset(),
    _E: frozenset(),
}


def can_transition(from_status: str, to_status: str) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, frozenset())


def assert_transition(from_status: str, to_status: str) -> None:
    if not can_transition(from_status, to_status):
        raise InvalidStatusTransitionError(from_status, to_status)


def status_after_sale(stock_after: int) -> str:
    """Buy-now leaves multi-unit listings available until the last unit goes."""
    return _S if stock_after == 0 else _A


def status_after_deadline(has_open_bid: bool) -> str:
    return _P if has_open_bid else _E
