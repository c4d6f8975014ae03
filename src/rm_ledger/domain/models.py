"""Domain models for rm_ledger: pure dataclasses, no business logic."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SaleRecord:
    """One executed sale. Append-only: rows are never updated or deleted."""

    id: str
    listing_id: str
    buyer_id: str
    buyer_name: str
    price_cents: int
    executed_at: datetime


@dataclass(frozen=True)
class MarketStats:
    listing_id: str
    last_sale_price_cents: int | None
    thirty_day_avg_cents: int | None
    high_price_cents: int | None
    low_price_cents: int | None
    sales_count: int
