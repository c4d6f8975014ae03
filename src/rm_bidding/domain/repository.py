"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_bidding.domain.models import Bid


class BidRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, bid: Bid) -> None: ...

    async def get(self, db: AsyncSession, bid_id: str) -> Bid | None: ...

    async def highest_open_amount(self, db: AsyncSession, listing_id: str) -> int | None: ...

    async def list_for_listing(
        self, db: AsyncSession, listing_id: str, status: str | None
    ) -> list[Bid]: ...

    async def mark_accepted(
        self, db: AsyncSession, listing_id: str, bid_id: str, now: datetime
    ) -> Bid | None: ...

    async def reject_open(
        self, db: AsyncSession, listing_id: str, now: datetime
    ) -> list[str]: ...

    async def expire_past_due(
        self, db: AsyncSession, now: datetime, listing_id: str | None = None
    ) -> list[tuple[str, str]]: ...
