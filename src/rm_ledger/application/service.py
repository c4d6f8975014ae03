"""LedgerService: append-only sale history plus derived market stats.

append_sale runs inside the caller's transaction (buy-now / accept-bid), so the
sale row and the listing's status change commit together or not at all.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.rm_common.cents import is_positive_cents
from src.rm_common.datetime_utils import utc_now
from src.rm_common.errors import InvalidPriceError
from src.rm_common.id_generator import generate_id
from src.rm_ledger.application.schemas import MarketStatsResponse, SaleListResponse, SaleResponse
from src.rm_ledger.domain.models import MarketStats, SaleRecord
from src.rm_ledger.domain.repository import SaleLedgerRepositoryProtocol
from src.rm_ledger.domain.stats import compute_market_stats
from src.rm_ledger.infrastructure.persistence import SaleLedgerRepository

logger = logging.getLogger(__name__)


class LedgerService:
    def __init__(self, repo: SaleLedgerRepositoryProtocol | None = None) -> None:
        self._repo: SaleLedgerRepositoryProtocol = repo or SaleLedgerRepository()

    async def append_sale(
        self,
        db: AsyncSession,
        listing_id: str,
        buyer_id: str,
        buyer_name: str,
        price_cents: int,
        executed_at: datetime | None = None,
    ) -> SaleRecord:
        """Write one sale row. Caller owns the transaction."""
        if not is_positive_cents(price_cents):
            raise InvalidPriceError("price_cents", price_cents)
        record = SaleRecord(
            id=generate_id(),
            listing_id=listing_id,
            buyer_id=buyer_id,
            buyer_name=buyer_name,
            price_cents=price_cents,
            executed_at=executed_at or utc_now(),
        )
        await self._repo.append(db, record)
        logger.info(
            "Sale recorded listing=%s buyer=%s price=%d", listing_id, buyer_id, price_cents
        )
        return record

    async def compute_market_stats(
        self, db: AsyncSession, listing_id: str, now: datetime | None = None
    ) -> MarketStats:
        records = await self._repo.list_for_listing(db, listing_id)
        return compute_market_stats(
            listing_id, records, now or utc_now(), settings.MARKET_STATS_WINDOW_DAYS
        )

    async def list_sales(
        self, db: AsyncSession, listing_id: str, limit: int = 50
    ) -> SaleListResponse:
        records = await self._repo.list_for_listing(db, listing_id, limit)
        return SaleListResponse(items=[SaleResponse.from_domain(r) for r in records])

    async def get_stats(self, db: AsyncSession, listing_id: str) -> MarketStatsResponse:
        return MarketStatsResponse.from_domain(await self.compute_market_stats(db, listing_id))
