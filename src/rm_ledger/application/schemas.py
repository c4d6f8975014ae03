"""Pydantic schemas for rm_ledger API responses."""

from pydantic import BaseModel

from src.rm_common.cents import cents_to_display
from src.rm_ledger.domain.models import MarketStats, SaleRecord


class SaleResponse(BaseModel):
    id: str
    listing_id: str
    buyer_id: str
    buyer_name: str
    price_cents: int
    price_display: str
    executed_at: str

    @classmethod
    def from_domain(cls, record: SaleRecord) -> "SaleResponse":
        return cls(
            id=record.id,
            listing_id=record.listing_id,
            buyer_id=record.buyer_id,
            buyer_name=record.buyer_name,
            price_cents=record.price_cents,
            price_display=cents_to_display(record.price_cents),
            executed_at=record.executed_at.isoformat(),
        )


class SaleListResponse(BaseModel):
    items: list[SaleResponse]


class MarketStatsResponse(BaseModel):
    listing_id: str
    last_sale_price_cents: int | None
    thirty_day_avg_cents: int | None
    high_price_cents: int | None
    low_price_cents: int | None
    sales_count: int

    @classmethod
    def from_domain(cls, stats: MarketStats) -> "MarketStatsResponse":
        return cls(
            listing_id=stats.listing_id,
            last_sale_price_cents=stats.last_sale_price_cents,
            thirty_day_avg_cents=stats.thirty_day_avg_cents,
            high_price_cents=stats.high_price_cents,
            low_price_cents=stats.low_price_cents,
            sales_count=stats.sales_count,
        )
