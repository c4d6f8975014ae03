"""BidRepository: concrete implementation of BidRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Transaction ownership: the CALLER commits or rolls back, and holds the
listing row lock (FOR UPDATE) around any read-then-write on a listing's bids.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_bidding.domain.models import Bid

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = "id, listing_id, bidder_id, amount_cents, status, created_at, expires_at, updated_at"

_INSERT_SQL = text("""
    INSERT INTO bids (id, listing_id, bidder_id, amount_cents, status,
                      created_at, expires_at, updated_at)
    VALUES (:id, :listing_id, :bidder_id, :amount_cents, :status,
            :created_at, :expires_at, :updated_at)
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM bids WHERE id = :bid_id")

_HIGHEST_OPEN_SQL = text("""
    SELECT MAX(amount_cents)
    FROM bids
    WHERE listing_id = :listing_id AND status = 'open'
""")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM bids
    WHERE listing_id = :listing_id
      AND (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    ORDER BY amount_cents DESC, created_at ASC
""")

# The partial unique index uq_bids_one_accepted_per_listing backs this guard
_MARK_ACCEPTED_SQL = text(f"""
    UPDATE bids
    SET status = 'accepted', updated_at = :now
    WHERE id = :bid_id
      AND listing_id = :listing_id
      AND status = 'open'
    RETURNING {_COLUMNS}
""")

_REJECT_OPEN_SQL = text("""
    UPDATE bids
    SET status = 'rejected', updated_at = :now
    WHERE listing_id = :listing_id AND status = 'open'
    RETURNING id
""")

# Only bids on listings still taking bids; a pending listing keeps its bids for the seller.
# Cutoff is the earlier of now and the listing deadline: a bid still valid at
# bid_end_time stays open for the seller to accept.
_EXPIRE_PAST_DUE_SQL = text("""
    UPDATE bids AS b
    SET status = 'expired', updated_at = :now
    FROM listings AS l
    WHERE b.listing_id = l.id
      AND l.status = 'available'
      AND b.status = 'open'
      AND b.expires_at IS NOT NULL
      AND b.expires_at < LEAST(
            CAST(:now AS TIMESTAMPTZ),
            COALESCE(l.bid_end_time, CAST(:now AS TIMESTAMPTZ))
          )
      AND (CAST(:listing_id AS TEXT) IS NULL OR b.listing_id = CAST(:listing_id AS TEXT))
    RETURNING b.id, b.listing_id
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_bid(row: object) -> Bid:
    return Bid(
        id=row.id,  # type: ignore[attr-defined]
        listing_id=row.listing_id,  # type: ignore[attr-defined]
        bidder_id=str(row.bidder_id),  # type: ignore[attr-defined]
        amount_cents=row.amount_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        expires_at=row.expires_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BidRepository:
    async def insert(self, db: AsyncSession, bid: Bid) -> None:
        await db.execute(
            _INSERT_SQL,
            {
                "id": bid.id,
                "listing_id": bid.listing_id,
                "bidder_id": bid.bidder_id,
                "amount_cents": bid.amount_cents,
                "status": bid.status,
                "created_at": bid.created_at,
                "expires_at": bid.expires_at,
                "updated_at": bid.updated_at,
            },
        )

    async def get(self, db: AsyncSession, bid_id: str) -> Bid | None:
        result = await db.execute(_GET_SQL, {"bid_id": bid_id})
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def highest_open_amount(self, db: AsyncSession, listing_id: str) -> int | None:
        result = await db.execute(_HIGHEST_OPEN_SQL, {"listing_id": listing_id})
        return result.scalar_one_or_none()

    async def list_for_listing(
        self, db: AsyncSession, listing_id: str, status: str | None
    ) -> list[Bid]:
        result = await db.execute(_LIST_SQL, {"listing_id": listing_id, "status": status})
        return [_row_to_bid(row) for row in result.fetchall()]

    async def mark_accepted(
        self, db: AsyncSession, listing_id: str, bid_id: str, now: datetime
    ) -> Bid | None:
        result = await db.execute(
            _MARK_ACCEPTED_SQL, {"listing_id": listing_id, "bid_id": bid_id, "now": now}
        )
        row = result.fetchone()
        return _row_to_bid(row) if row else None

    async def reject_open(
        self, db: AsyncSession, listing_id: str, now: datetime
    ) -> list[str]:
        result = await db.execute(_REJECT_OPEN_SQL, {"listing_id": listing_id, "now": now})
        return [row.id for row in result.fetchall()]

    async def expire_past_due(
        self, db: AsyncSession, now: datetime, listing_id: str | None = None
    ) -> list[tuple[str, str]]:
        result = await db.execute(
            _EXPIRE_PAST_DUE_SQL, {"now": now, "listing_id": listing_id}
        )
        return [(row.id, row.listing_id) for row in result.fetchall()]
