"""Repository Protocol for the sale ledger.

No update or delete method: the ledger is append-only.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_ledger.domain.models import SaleRecord


class SaleLedgerRepositoryProtocol(Protocol):
    async def append(self, db: AsyncSession, record: SaleRecord) -> None: ...

    async def list_for_listing(
        self, db: AsyncSession, listing_id: str, limit: int | None = None
    ) -> list[SaleRecord]: ...
