"""Listing status transitions."""

import pytest

from src.rm_common.errors import InvalidStatusTransitionError
from src.rm_listing.domain.state_machine import (
    assert_transition,
    can_transition,
    status_after_deadline,
    status_after_sale,
)


@pytest.mark.parametrize(
    ("src", "dst"),
    [
        ("available", "sold"),
        ("available", "pending"),
        ("available", "expired"),
        ("pending", "sold"),
    ],
)
def test_allowed(src: str, dst: str) -> None:
    assert can_transition(src, dst)
    assert_transition(src, dst)


@pytest.mark.parametrize(
    ("src", "dst"),
    [
        ("sold", "available"),
        ("sold", "expired"),
        ("expired", "available"),
        ("expired", "sold"),
        ("pending", "expired"),
        ("pending", "available"),
    ],
)
def test_rejected(src: str, dst: str) -> None:
    assert not can_transition(src, dst)
    with pytest.raises(InvalidStatusTransitionError):
        assert_transition(src, dst)


def test_sale_leaves_multi_unit_available() -> None:
    assert status_after_sale(2) == "available"
    assert status_after_sale(0) == "sold"


def test_deadline_outcome() -> None:
    assert status_after_deadline(True) == "pending"
    assert status_after_deadline(False) == "expired"
