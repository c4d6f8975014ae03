"""ListingService: listing CRUD and buy-now.

Mutations own their transaction via run_in_transaction and lock the listing
row first. Buy-now is the stock check-then-act:

  lazy sweep (own txn) → lock row → validate → CAS decrement on expected
  stock → append sale (same txn) → [sold: reject open bids] → COMMIT

The sale row and the status change commit together, so no reader sees a
sold listing without its history record. A conflict is retried once, then
reported as ListingNoLongerAvailableError.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.rm_bidding.application.service import BiddingService
from src.rm_bidding.domain.repository import BidRepositoryProtocol
from src.rm_bidding.infrastructure.persistence import BidRepository
from src.rm_common.cents import is_positive_cents
from src.rm_common.database import retry_once_on_conflict, run_in_transaction
from src.rm_common.datetime_utils import utc_now
from src.rm_common.enums import BidStatus, ChangeAction, ListingStatus
from src.rm_common.errors import (
    ConcurrentModificationError,
    InvalidListingError,
    InvalidPriceError,
    ListingNoLongerAvailableError,
    ListingNotAvailableError,
    ListingNotDeletableError,
    ListingNotFoundError,
    NotListingOwnerError,
    OutOfStockError,
    SelfPurchaseError,
)
from src.rm_common.id_generator import generate_id
from src.rm_feed.domain.events import (
    ChangeEvent,
    bid_updated,
    listing_changed,
    listing_deleted,
    sale_inserted,
)
from src.rm_feed.infrastructure.cache import ListingCache
from src.rm_feed.infrastructure.publisher import FeedPublisher, FeedPublisherProtocol
from src.rm_ledger.application.service import LedgerService
from src.rm_ledger.domain.models import SaleRecord
from src.rm_listing.application.schemas import (
    BuyNowResponse,
    CreateListingRequest,
    ListingListResponse,
    ListingResponse,
    cursor_decode,
    cursor_encode,
)
from src.rm_listing.domain.models import Listing, ListingFilters
from src.rm_listing.domain.repository import ListingRepositoryProtocol
from src.rm_listing.domain.state_machine import assert_transition, status_after_sale
from src.rm_listing.infrastructure.persistence import ListingRepository

logger = logging.getLogger(__name__)


@dataclass
class _Purchase:
    listing: Listing
    sale: SaleRecord
    rejected_bid_ids: list[str]


class ListingService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        bids: BidRepositoryProtocol | None = None,
        ledger: LedgerService | None = None,
        bidding: BiddingService | None = None,
        feed: FeedPublisherProtocol | None = None,
        cache: ListingCache | None = None,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._bids: BidRepositoryProtocol = bids or BidRepository()
        self._ledger = ledger or LedgerService()
        self._bidding = bidding or BiddingService(bids=self._bids, listings=self._repo)
        self._feed: FeedPublisherProtocol = feed or FeedPublisher()
        self._cache = cache or ListingCache()

    # ------------------------------------------------------------------
    # Create / read
    # ------------------------------------------------------------------

    async def create_listing(
        self,
        db: AsyncSession,
        seller_id: str,
        req: CreateListingRequest,
        now: datetime | None = None,
    ) -> ListingResponse:
        now = now or utc_now()
        _validate_new_listing(req, now)
        listing = Listing(
            id=generate_id(),
            seller_id=seller_id,
            restaurant_name=req.restaurant_name,
            location=req.location,
            cuisine=req.cuisine,
            reservation_date=req.reservation_date,
            reservation_time=req.reservation_time,
            party_size=req.party_size,
            description=req.description,
            image_url=req.image_url,
            price_cents=req.price_cents,
            original_price_cents=req.original_price_cents,
            status=ListingStatus.AVAILABLE.value,
            stock_remaining=req.stock_remaining,
            allow_bidding=req.allow_bidding,
            minimum_bid_cents=req.minimum_bid_cents if req.allow_bidding else None,
            current_bid_cents=None,
            bid_end_time=req.bid_end_time if req.allow_bidding else None,
            last_sale_price_cents=None,
            last_sale_date=None,
            created_at=now,
            updated_at=now,
        )
        created = await run_in_transaction(db, lambda: self._repo.insert(db, listing))
        logger.info("Listing created id=%s seller=%s", created.id, seller_id)
        await self._feed.publish(
            [ChangeEvent("listing", created.id, created.id, ChangeAction.INSERT)]
        )
        return ListingResponse.from_domain(created)

    async def get_listing(self, db: AsyncSession, listing_id: str) -> ListingResponse:
        await self._bidding.sweep_listing(db, listing_id)
        cached = await self._cache.get(listing_id)
        if cached is not None:
            return ListingResponse.model_validate(cached)
        listing = await self._repo.get(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        resp = ListingResponse.from_domain(listing)
        await self._cache.set(listing_id, resp.model_dump())
        return resp

    async def list_listings(
        self,
        db: AsyncSession,
        filters: ListingFilters,
        cursor: str | None,
        limit: int,
    ) -> ListingListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        listings = await self._repo.list_listings(db, filters, cursor_ts, cursor_id, limit + 1)
        has_more = len(listings) > limit
        page = listings[:limit]

        items = [ListingResponse.from_domain(listing) for listing in page]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return ListingListResponse(items=items, next_cursor=next_cursor, has_more=has_more)

    # ------------------------------------------------------------------
    # Owner mutations
    # ------------------------------------------------------------------

    async def update_ask(
        self,
        db: AsyncSession,
        listing_id: str,
        seller_id: str,
        price_cents: int,
        now: datetime | None = None,
    ) -> ListingResponse:
        if not is_positive_cents(price_cents):
            raise InvalidPriceError("price_cents", price_cents)
        now = now or utc_now()

        async def _update() -> Listing:
            listing = await self._locked_owned(db, listing_id, seller_id)
            if not listing.is_available:
                raise ListingNotAvailableError(listing_id, listing.status)
            updated = await self._repo.update_price(db, listing_id, seller_id, price_cents, now)
            if updated is None:
                raise ConcurrentModificationError(f"listing {listing_id} changed during ask update")
            return updated

        updated = await run_in_transaction(db, _update)
        logger.info("Ask updated listing=%s price=%d", listing_id, price_cents)
        await self._feed.publish([listing_changed(listing_id, price_cents=price_cents)])
        return ListingResponse.from_domain(updated)

    async def delete_listing(self, db: AsyncSession, listing_id: str, seller_id: str) -> None:
        async def _delete() -> None:
            listing = await self._locked_owned(db, listing_id, seller_id)
            if not listing.is_available:
                raise ListingNotDeletableError(listing_id, listing.status)
            if not await self._repo.delete(db, listing_id, seller_id):
                raise ListingNotDeletableError(listing_id, listing.status)

        await run_in_transaction(db, _delete)
        logger.info("Listing deleted id=%s seller=%s", listing_id, seller_id)
        await self._feed.publish([listing_deleted(listing_id)])

    async def _locked_owned(self, db: AsyncSession, listing_id: str, seller_id: str) -> Listing:
        listing = await self._repo.lock_for_update(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        if listing.seller_id != seller_id:
            raise NotListingOwnerError(listing_id)
        return listing

    # ------------------------------------------------------------------
    # Buy-now
    # ------------------------------------------------------------------

    async def buy_now(
        self,
        db: AsyncSession,
        listing_id: str,
        buyer_id: str,
        buyer_name: str,
        now: datetime | None = None,
    ) -> BuyNowResponse:
        now = now or utc_now()
        await self._bidding.sweep_listing(db, listing_id, now)

        async def _buy() -> _Purchase:
            listing = await self._repo.lock_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if listing.seller_id == buyer_id:
                raise SelfPurchaseError()
            if listing.stock_remaining <= 0:
                raise OutOfStockError(listing_id)
            if not listing.is_available:
                raise ListingNotAvailableError(listing_id, listing.status)
            if status_after_sale(listing.stock_remaining - 1) == ListingStatus.SOLD.value:
                assert_transition(listing.status, ListingStatus.SOLD.value)

            updated = await self._repo.decrement_stock(
                db, listing_id, listing.stock_remaining, now
            )
            if updated is None:
                raise ConcurrentModificationError(f"stock of listing {listing_id} changed")
            sale = await self._ledger.append_sale(
                db, listing_id, buyer_id, buyer_name, listing.price_cents, now
            )

            rejected: list[str] = []
            if updated.status == ListingStatus.SOLD.value and settings.AUTO_REJECT_COMPETING_BIDS:
                rejected = await self._bids.reject_open(db, listing_id, now)
                if rejected:
                    updated.current_bid_cents = await self._repo.sync_current_bid(
                        db, listing_id, now
                    )
            return _Purchase(updated, sale, rejected)

        purchase = await retry_once_on_conflict(
            lambda: run_in_transaction(db, _buy),
            lambda: ListingNoLongerAvailableError(listing_id),
        )
        logger.info(
            "Buy-now listing=%s buyer=%s price=%d stock_left=%d",
            listing_id, buyer_id, purchase.sale.price_cents, purchase.listing.stock_remaining,
        )
        events: list[ChangeEvent] = [
            listing_changed(
                listing_id,
                status=purchase.listing.status,
                stock_remaining=purchase.listing.stock_remaining,
                current_bid_cents=purchase.listing.current_bid_cents,
            ),
            sale_inserted(listing_id, purchase.sale.id, price_cents=purchase.sale.price_cents),
            *(
                bid_updated(listing_id, rid, status=BidStatus.REJECTED.value)
                for rid in purchase.rejected_bid_ids
            ),
        ]
        await self._feed.publish(events)
        return BuyNowResponse.build(purchase.listing, purchase.sale, purchase.rejected_bid_ids)


def _validate_new_listing(req: CreateListingRequest, now: datetime) -> None:
    if not is_positive_cents(req.price_cents):
        raise InvalidPriceError("price_cents", req.price_cents)
    if not is_positive_cents(req.original_price_cents):
        raise InvalidPriceError("original_price_cents", req.original_price_cents)
    if req.stock_remaining < 1:
        raise InvalidListingError("stock_remaining must be at least 1")
    if not req.allow_bidding:
        return
    if req.stock_remaining != 1:
        raise InvalidListingError("bidding is only available on single-unit listings")
    if req.minimum_bid_cents is not None and not is_positive_cents(req.minimum_bid_cents):
        raise InvalidPriceError("minimum_bid_cents", req.minimum_bid_cents)
    if req.bid_end_time is not None and req.bid_end_time <= now:
        raise InvalidListingError("bid_end_time must be in the future")
