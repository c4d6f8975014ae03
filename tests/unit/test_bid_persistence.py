"""Unit tests for BidRepository using MagicMock AsyncSession."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.rm_bidding.domain.models import Bid
from src.rm_bidding.infrastructure.persistence import BidRepository

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


def _make_bid_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", "B1")
    row.listing_id = kwargs.get("listing_id", "L1")
    row.bidder_id = kwargs.get("bidder_id", "alice")
    row.amount_cents = kwargs.get("amount_cents", 150)
    row.status = kwargs.get("status", "open")
    row.created_at = NOW
    row.expires_at = NOW + timedelta(days=7)
    row.updated_at = NOW
    return row


@pytest.fixture
def db():
    return MagicMock()


class TestBidRepository:
    async def test_insert_binds_all_columns(self, db):
        db.execute = AsyncMock()
        bid = Bid("B1", "L1", "alice", 150, "open", NOW, NOW + timedelta(days=7), NOW)

        await BidRepository().insert(db, bid)

        params = db.execute.await_args.args[1]
        assert params["amount_cents"] == 150
        assert params["expires_at"] == NOW + timedelta(days=7)

    async def test_highest_open_amount(self, db):
        result = MagicMock()
        result.scalar_one_or_none.return_value = 400
        db.execute = AsyncMock(return_value=result)
        assert await BidRepository().highest_open_amount(db, "L1") == 400

    async def test_mark_accepted_only_from_open(self, db):
        result = MagicMock()
        result.fetchone.return_value = None
        db.execute = AsyncMock(return_value=result)

        assert await BidRepository().mark_accepted(db, "L1", "B1", NOW) is None
        assert "status = 'open'" in str(db.execute.await_args.args[0])

    async def test_mark_accepted_maps_row(self, db):
        result = MagicMock()
        result.fetchone.return_value = _make_bid_row(status="accepted")
        db.execute = AsyncMock(return_value=result)
        bid = await BidRepository().mark_accepted(db, "L1", "B1", NOW)
        assert bid is not None and bid.status == "accepted"

    async def test_expire_past_due_returns_pairs(self, db):
        result = MagicMock()
        result.fetchall.return_value = [MagicMock(id="B1", listing_id="L1")]
        db.execute = AsyncMock(return_value=result)

        expired = await BidRepository().expire_past_due(db, NOW, "L1")

        assert expired == [("B1", "L1")]
        sql = str(db.execute.await_args.args[0])
        assert "l.status = 'available'" in sql
        assert "LEAST(" in sql and "l.bid_end_time" in sql

    async def test_list_for_listing_highest_first(self, db):
        result = MagicMock()
        result.fetchall.return_value = [_make_bid_row(amount_cents=300), _make_bid_row(amount_cents=200)]
        db.execute = AsyncMock(return_value=result)

        bids = await BidRepository().list_for_listing(db, "L1", None)

        assert [b.amount_cents for b in bids] == [300, 200]
        assert "ORDER BY amount_cents DESC" in str(db.execute.await_args.args[0])
