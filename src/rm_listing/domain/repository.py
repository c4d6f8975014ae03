"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Every mutating method is a conditional UPDATE ... WHERE <guard> RETURNING: a
None / empty return means the guard did not hold (a concurrent writer won).
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_listing.domain.models import Listing, ListingFilters


class ListingRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, listing: Listing) -> Listing: ...

    async def get(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def lock_for_update(self, db: AsyncSession, listing_id: str) -> Listing | None: ...

    async def list_listings(
        self,
        db: AsyncSession,
        filters: ListingFilters,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]: ...

    async def update_price(
        self, db: AsyncSession, listing_id: str, seller_id: str, price_cents: int, now: datetime
    ) -> Listing | None: ...

    async def delete(self, db: AsyncSession, listing_id: str, seller_id: str) -> bool: ...

    async def decrement_stock(
        self, db: AsyncSession, listing_id: str, expected_stock: int, now: datetime
    ) -> Listing | None: ...

    async def mark_sold_by_bid(
        self, db: AsyncSession, listing_id: str, price_cents: int, now: datetime
    ) -> Listing | None: ...

    async def set_current_bid(
        self, db: AsyncSession, listing_id: str, amount_cents: int | None, now: datetime
    ) -> Listing | None: ...

    async def sync_current_bid(
        self, db: AsyncSession, listing_id: str, now: datetime
    ) -> int | None: ...

    async def close_bidding(
        self, db: AsyncSession, now: datetime, listing_id: str | None = None
    ) -> list[tuple[str, str]]: ...
