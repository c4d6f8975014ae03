"""SaleLedgerRepository: append and read sale_history rows.

All queries use raw text() SQL (no ORM). Insert only; the table trigger
rejects UPDATE and DELETE.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_ledger.domain.models import SaleRecord

_INSERT_SALE_SQL = text("""
    INSERT INTO sale_history (id, listing_id, buyer_id, buyer_name, price, executed_at)
    VALUES (:id, :listing_id, :buyer_id, :buyer_name, :price, :executed_at)
""")

_LIST_SALES_SQL = text("""
    SELECT id, listing_id, buyer_id, buyer_name, price, executed_at
    FROM sale_history
    WHERE listing_id = :listing_id
    ORDER BY executed_at DESC, id DESC
    LIMIT :limit
""")


def _row_to_sale(row: object) -> SaleRecord:
    return SaleRecord(
        id=row.id,  # type: ignore[attr-defined]
        listing_id=row.listing_id,  # type: ignore[attr-defined]
        buyer_id=str(row.buyer_id),  # type: ignore[attr-defined]
        buyer_name=row.buyer_name,  # type: ignore[attr-defined]
        price_cents=row.price,  # type: ignore[attr-defined]
        executed_at=row.executed_at,  # type: ignore[attr-defined]
    )


class SaleLedgerRepository:
    async def append(self, db: AsyncSession, record: SaleRecord) -> None:
        await db.execute(
            _INSERT_SALE_SQL,
            {
                "id": record.id,
                "listing_id": record.listing_id,
                "buyer_id": record.buyer_id,
                "buyer_name": record.buyer_name,
                "price": record.price_cents,
                "executed_at": record.executed_at,
            },
        )

    async def list_for_listing(
        self, db: AsyncSession, listing_id: str, limit: int | None = None
    ) -> list[SaleRecord]:
        # LIMIT NULL means no limit in PostgreSQL
        result = await db.execute(_LIST_SALES_SQL, {"listing_id": listing_id, "limit": limit})
        return [_row_to_sale(row) for row in result.fetchall()]
