"""Market statistics over a listing's sale history.

compute_market_stats is a pure function of the record set and the clock, so
the same records always yield the same stats.
"""

from collections.abc import Sequence
from datetime import datetime, timedelta

from src.rm_common.cents import mean_cents
from src.rm_ledger.domain.models import MarketStats, SaleRecord


def compute_market_stats(
    listing_id: str,
    records: Sequence[SaleRecord],
    now: datetime,
    window_days: int = 30,
) -> MarketStats:
    if not records:
        return MarketStats(
            listing_id=listing_id,
            last_sale_price_cents=None,
            thirty_day_avg_cents=None,
            high_price_cents=None,
            low_price_cents=None,
            sales_count=0,
        )

    # Ties on executed_at fall back to id so "most recent" is deterministic
    latest = max(records, key=lambda r: (r.executed_at, r.id))
    window_start = now - timedelta(days=window_days)
    recent = [r.price_cents for r in records if r.executed_at >= window_start]
    prices = [r.price_cents for r in records]

    return MarketStats(
        listing_id=listing_id,
        last_sale_price_cents=latest.price_cents,
        thirty_day_avg_cents=mean_cents(recent),
        high_price_cents=max(prices),
        low_price_cents=min(prices),
        sales_count=len(records),
    )
