"""ListingRepository: concrete implementation of ListingRepositoryProtocol.

All queries use raw text() SQL (no ORM).
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Transaction ownership: the CALLER commits or rolls back. Check-then-act callers
take lock_for_update first; the guarded UPDATEs below still re-state their
preconditions so a missed lock cannot oversell.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_listing.domain.models import Listing, ListingFilters

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_COLUMNS = """
    id, seller_id, restaurant_name, location, cuisine,
    reservation_date, reservation_time, party_size, description, image_url,
    price_cents, original_price_cents, status, stock_remaining,
    allow_bidding, minimum_bid_cents, current_bid_cents, bid_end_time,
    last_sale_price_cents, last_sale_date, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO listings (
        id, seller_id, restaurant_name, location, cuisine,
        reservation_date, reservation_time, party_size, description, image_url,
        price_cents, original_price_cents, status, stock_remaining,
        allow_bidding, minimum_bid_cents, bid_end_time,
        created_at, updated_at
    ) VALUES (
        :id, :seller_id, :restaurant_name, :location, :cuisine,
        :reservation_date, :reservation_time, :party_size, :description, :image_url,
        :price_cents, :original_price_cents, :status, :stock_remaining,
        :allow_bidding, :minimum_bid_cents, :bid_end_time,
        :created_at, :updated_at
    )
    RETURNING {_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_COLUMNS} FROM listings WHERE id = :listing_id")

_LOCK_SQL = text(f"SELECT {_COLUMNS} FROM listings WHERE id = :listing_id FOR UPDATE")

_LIST_SQL = text(f"""
    SELECT {_COLUMNS}
    FROM listings
    WHERE
        (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (CAST(:cuisine AS TEXT) IS NULL OR cuisine ILIKE CAST(:cuisine AS TEXT))
        AND (CAST(:location AS TEXT) IS NULL
             OR location ILIKE '%' || CAST(:location AS TEXT) || '%')
        AND (CAST(:seller_id AS TEXT) IS NULL OR seller_id = CAST(:seller_id AS TEXT))
        AND (CAST(:min_price AS BIGINT) IS NULL OR price_cents >= CAST(:min_price AS BIGINT))
        AND (CAST(:max_price AS BIGINT) IS NULL OR price_cents <= CAST(:max_price AS BIGINT))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_UPDATE_PRICE_SQL = text(f"""
    UPDATE listings
    SET price_cents = :price_cents, updated_at = :now
    WHERE id = :listing_id
      AND seller_id = :seller_id
      AND status = 'available'
    RETURNING {_COLUMNS}
""")

# Bids go with the listing (ON DELETE CASCADE); sale_history has no FK and survives
_DELETE_SQL = text("""
    DELETE FROM listings
    WHERE id = :listing_id
      AND seller_id = :seller_id
      AND status = 'available'
      AND NOT EXISTS (
          SELECT 1 FROM bids WHERE listing_id = :listing_id AND status = 'accepted'
      )
    RETURNING id
""")

# CAS on stock: the expected value must still be current
_DECREMENT_STOCK_SQL = text(f"""
    UPDATE listings
    SET stock_remaining = stock_remaining - 1,
        status = CASE WHEN stock_remaining - 1 = 0 THEN 'sold' ELSE status END,
        last_sale_price_cents = price_cents,
        last_sale_date = :now,
        updated_at = :now
    WHERE id = :listing_id
      AND status = 'available'
      AND stock_remaining = :expected_stock
      AND stock_remaining > 0
    RETURNING {_COLUMNS}
""")

_MARK_SOLD_BY_BID_SQL = text(f"""
    UPDATE listings
    SET status = 'sold',
        price_cents = :price_cents,
        stock_remaining = 0,
        last_sale_price_cents = :price_cents,
        last_sale_date = :now,
        updated_at = :now
    WHERE id = :listing_id
      AND status IN ('available', 'pending')
    RETURNING {_COLUMNS}
""")

_SET_CURRENT_BID_SQL = text(f"""
    UPDATE listings
    SET current_bid_cents = :amount, updated_at = :now
    WHERE id = :listing_id
    RETURNING {_COLUMNS}
""")

_SYNC_CURRENT_BID_SQL = text("""
    UPDATE listings
    SET current_bid_cents = (
            SELECT MAX(amount_cents) FROM bids
            WHERE listing_id = :listing_id AND status = 'open'
        ),
        updated_at = :now
    WHERE id = :listing_id
    RETURNING current_bid_cents
""")

# Deadline transition: idempotent because only 'available' rows match
_CLOSE_BIDDING_SQL = text("""
    UPDATE listings
    SET status = CASE WHEN current_bid_cents IS NOT NULL THEN 'pending' ELSE 'expired' END,
        updated_at = :now
    WHERE status = 'available'
      AND allow_bidding = TRUE
      AND bid_end_time IS NOT NULL
      AND bid_end_time < :now
      AND (CAST(:listing_id AS TEXT) IS NULL OR id = CAST(:listing_id AS TEXT))
    RETURNING id, status
""")

# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_listing(row: object) -> Listing:
    return Listing(
        id=row.id,  # type: ignore[attr-defined]
        seller_id=str(row.seller_id),  # type: ignore[attr-defined]
        restaurant_name=row.restaurant_name,  # type: ignore[attr-defined]
        location=row.location,  # type: ignore[attr-defined]
        cuisine=row.cuisine,  # type: ignore[attr-defined]
        reservation_date=row.reservation_date,  # type: ignore[attr-defined]
        reservation_time=row.reservation_time,  # type: ignore[attr-defined]
        party_size=row.party_size,  # type: ignore[attr-defined]
        description=row.description,  # type: ignore[attr-defined]
        image_url=row.image_url,  # type: ignore[attr-defined]
        price_cents=row.price_cents,  # type: ignore[attr-defined]
        original_price_cents=row.original_price_cents,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        stock_remaining=row.stock_remaining,  # type: ignore[attr-defined]
        allow_bidding=row.allow_bidding,  # type: ignore[attr-defined]
        minimum_bid_cents=row.minimum_bid_cents,  # type: ignore[attr-defined]
        current_bid_cents=row.current_bid_cents,  # type: ignore[attr-defined]
        bid_end_time=row.bid_end_time,  # type: ignore[attr-defined]
        last_sale_price_cents=row.last_sale_price_cents,  # type: ignore[attr-defined]
        last_sale_date=row.last_sale_date,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _one(result: object) -> Listing | None:
    row = result.fetchone()  # type: ignore[attr-defined]
    return _row_to_listing(row) if row else None


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    async def insert(self, db: AsyncSession, listing: Listing) -> Listing:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": listing.id,
                "seller_id": listing.seller_id,
                "restaurant_name": listing.restaurant_name,
                "location": listing.location,
                "cuisine": listing.cuisine,
                "reservation_date": listing.reservation_date,
                "reservation_time": listing.reservation_time,
                "party_size": listing.party_size,
                "description": listing.description,
                "image_url": listing.image_url,
                "price_cents": listing.price_cents,
                "original_price_cents": listing.original_price_cents,
                "status": listing.status,
                "stock_remaining": listing.stock_remaining,
                "allow_bidding": listing.allow_bidding,
                "minimum_bid_cents": listing.minimum_bid_cents,
                "bid_end_time": listing.bid_end_time,
                "created_at": listing.created_at,
                "updated_at": listing.updated_at,
            },
        )
        return _row_to_listing(result.fetchone())

    async def get(self, db: AsyncSession, listing_id: str) -> Listing | None:
        return _one(await db.execute(_GET_SQL, {"listing_id": listing_id}))

    async def lock_for_update(self, db: AsyncSession, listing_id: str) -> Listing | None:
        return _one(await db.execute(_LOCK_SQL, {"listing_id": listing_id}))

    async def list_listings(
        self,
        db: AsyncSession,
        filters: ListingFilters,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]:
        # asyncpg requires a real datetime object for TIMESTAMPTZ parameters
        cursor_ts_dt: datetime | None = None
        if cursor_ts is not None:
            cursor_ts_dt = datetime.fromisoformat(cursor_ts)

        result = await db.execute(
            _LIST_SQL,
            {
                "status": filters.status,
                "cuisine": filters.cuisine,
                "location": filters.location,
                "seller_id": filters.seller_id,
                "min_price": filters.min_price_cents,
                "max_price": filters.max_price_cents,
                "cursor_ts": cursor_ts_dt,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_listing(row) for row in result.fetchall()]

    async def update_price(
        self, db: AsyncSession, listing_id: str, seller_id: str, price_cents: int, now: datetime
    ) -> Listing | None:
        return _one(
            await db.execute(
                _UPDATE_PRICE_SQL,
                {
                    "listing_id": listing_id,
                    "seller_id": seller_id,
                    "price_cents": price_cents,
                    "now": now,
                },
            )
        )

    async def delete(self, db: AsyncSession, listing_id: str, seller_id: str) -> bool:
        result = await db.execute(
            _DELETE_SQL, {"listing_id": listing_id, "seller_id": seller_id}
        )
        return result.fetchone() is not None

    async def decrement_stock(
        self, db: AsyncSession, listing_id: str, expected_stock: int, now: datetime
    ) -> Listing | None:
        return _one(
            await db.execute(
                _DECREMENT_STOCK_SQL,
                {"listing_id": listing_id, "expected_stock": expected_stock, "now": now},
            )
        )

    async def mark_sold_by_bid(
        self, db: AsyncSession, listing_id: str, price_cents: int, now: datetime
    ) -> Listing | None:
        return _one(
            await db.execute(
                _MARK_SOLD_BY_BID_SQL,
                {"listing_id": listing_id, "price_cents": price_cents, "now": now},
            )
        )

    async def set_current_bid(
        self, db: AsyncSession, listing_id: str, amount_cents: int | None, now: datetime
    ) -> Listing | None:
        return _one(
            await db.execute(
                _SET_CURRENT_BID_SQL,
                {"listing_id": listing_id, "amount": amount_cents, "now": now},
            )
        )

    async def sync_current_bid(
        self, db: AsyncSession, listing_id: str, now: datetime
    ) -> int | None:
        """Recompute current_bid_cents from open bids; returns the new value."""
        result = await db.execute(_SYNC_CURRENT_BID_SQL, {"listing_id": listing_id, "now": now})
        row = result.fetchone()
        return row.current_bid_cents if row else None

    async def close_bidding(
        self, db: AsyncSession, now: datetime, listing_id: str | None = None
    ) -> list[tuple[str, str]]:
        """Move past-deadline available listings to pending/expired; returns (id, new_status)."""
        result = await db.execute(_CLOSE_BIDDING_SQL, {"now": now, "listing_id": listing_id})
        return [(row.id, row.status) for row in result.fetchall()]
