"""BiddingService: place / accept / list bids and the expiry sweep.

Every check-then-act runs through run_in_transaction:
  SET LOCAL lock_timeout → SELECT listing FOR UPDATE → validate → guarded
  UPDATE/INSERT → COMMIT (or ROLLBACK and re-raise).

Holding the listing row lock serializes all bid writes on one listing, so two
bids can never both read the same current highest. Change-feed events are
published only after COMMIT.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.rm_bidding.application.schemas import (
    AcceptBidResponse,
    BidListResponse,
    BidResponse,
    PlaceBidResponse,
    SweepResponse,
)
from src.rm_bidding.domain import rules
from src.rm_bidding.domain.models import Bid, SweepResult
from src.rm_bidding.domain.repository import BidRepositoryProtocol
from src.rm_bidding.infrastructure.persistence import BidRepository
from src.rm_common.database import retry_once_on_conflict, run_in_transaction
from src.rm_common.datetime_utils import utc_now
from src.rm_common.enums import BidStatus, ListingStatus
from src.rm_common.errors import (
    BidNotFoundError,
    BidNotOpenError,
    ConcurrentModificationError,
    ConflictError,
    ListingNoLongerAvailableError,
    ListingNotAvailableError,
    ListingNotFoundError,
    NotListingOwnerError,
)
from src.rm_common.id_generator import generate_id
from src.rm_feed.domain.events import (
    ChangeEvent,
    bid_inserted,
    bid_updated,
    listing_changed,
    sale_inserted,
)
from src.rm_feed.infrastructure.publisher import FeedPublisher, FeedPublisherProtocol
from src.rm_gateway.user.service import UserService
from src.rm_ledger.application.service import LedgerService
from src.rm_ledger.domain.models import SaleRecord
from src.rm_listing.domain.models import Listing
from src.rm_listing.domain.repository import ListingRepositoryProtocol
from src.rm_listing.domain.state_machine import assert_transition
from src.rm_listing.infrastructure.persistence import ListingRepository
from src.rm_ratelimit.application.service import RateLimiter, bid_policy

logger = logging.getLogger(__name__)


@dataclass
class _AcceptOutcome:
    bid: Bid
    listing: Listing
    sale: SaleRecord
    rejected_bid_ids: list[str] = field(default_factory=list)


class BiddingService:
    def __init__(
        self,
        bids: BidRepositoryProtocol | None = None,
        listings: ListingRepositoryProtocol | None = None,
        limiter: RateLimiter | None = None,
        ledger: LedgerService | None = None,
        feed: FeedPublisherProtocol | None = None,
        users: UserService | None = None,
    ) -> None:
        self._bids: BidRepositoryProtocol = bids or BidRepository()
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._limiter = limiter or RateLimiter()
        self._ledger = ledger or LedgerService()
        self._feed: FeedPublisherProtocol = feed or FeedPublisher()
        self._users = users or UserService()

    # ------------------------------------------------------------------
    # Place
    # ------------------------------------------------------------------

    async def place_bid(
        self,
        db: AsyncSession,
        listing_id: str,
        bidder_id: str,
        amount_cents: object,
        expires_in_days: int | None = None,
        now: datetime | None = None,
    ) -> PlaceBidResponse:
        amount = rules.validate_amount(amount_cents)
        days = rules.resolve_expiry_days(
            expires_in_days, settings.DEFAULT_BID_EXPIRY_DAYS, settings.MAX_BID_EXPIRY_DAYS
        )
        now = now or utc_now()
        await self.sweep_listing(db, listing_id, now)

        async def _place() -> tuple[Bid, Listing]:
            listing = await self._listings.lock_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            rules.check_biddable(listing, bidder_id, now)
            current_highest = await self._bids.highest_open_amount(db, listing_id)
            rules.check_amount(amount, current_highest, listing.minimum_bid_cents)

            # Gate last: a bid rejected by validation never consumes a slot
            await self._limiter.admit(db, bidder_id, bid_policy(), now)

            bid = Bid(
                id=generate_id(),
                listing_id=listing_id,
                bidder_id=bidder_id,
                amount_cents=amount,
                status=BidStatus.OPEN.value,
                created_at=now,
                expires_at=now + timedelta(days=days),
                updated_at=now,
            )
            await self._bids.insert(db, bid)
            updated = await self._listings.set_current_bid(db, listing_id, amount, now)
            if updated is None:
                raise ConcurrentModificationError(f"listing {listing_id} vanished mid-bid")
            return bid, updated

        bid, listing = await retry_once_on_conflict(
            lambda: run_in_transaction(db, _place),
            lambda: ListingNoLongerAvailableError(listing_id),
        )
        logger.info(
            "Bid placed id=%s listing=%s bidder=%s amount=%d",
            bid.id, listing_id, bidder_id, amount,
        )
        await self._feed.publish([
            bid_inserted(listing_id, bid.id, amount_cents=amount, status=bid.status),
            listing_changed(listing_id, current_bid_cents=listing.current_bid_cents),
        ])
        return PlaceBidResponse(
            bid=BidResponse.from_domain(bid), current_bid_cents=listing.current_bid_cents
        )

    # ------------------------------------------------------------------
    # Accept
    # ------------------------------------------------------------------

    async def accept_bid(
        self,
        db: AsyncSession,
        listing_id: str,
        bid_id: str,
        seller_id: str,
        now: datetime | None = None,
    ) -> AcceptBidResponse:
        now = now or utc_now()
        await self.sweep_listing(db, listing_id, now)

        async def _accept() -> _AcceptOutcome:
            listing = await self._listings.lock_for_update(db, listing_id)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if listing.seller_id != seller_id:
                raise NotListingOwnerError(listing_id)
            if listing.status not in (ListingStatus.AVAILABLE.value, ListingStatus.PENDING.value):
                raise ListingNotAvailableError(listing_id, listing.status)
            assert_transition(listing.status, ListingStatus.SOLD.value)

            bid = await self._bids.get(db, bid_id)
            if bid is None or bid.listing_id != listing_id:
                raise BidNotFoundError(bid_id)
            if not bid.is_open:
                raise BidNotOpenError(bid_id, bid.status)

            accepted = await self._bids.mark_accepted(db, listing_id, bid_id, now)
            if accepted is None:
                raise ConcurrentModificationError(f"bid {bid_id} changed before acceptance")

            rejected: list[str] = []
            if settings.AUTO_REJECT_COMPETING_BIDS:
                rejected = await self._bids.reject_open(db, listing_id, now)
            sold = await self._listings.mark_sold_by_bid(
                db, listing_id, accepted.amount_cents, now
            )
            if sold is None:
                raise ConcurrentModificationError(f"listing {listing_id} changed before sale")
            # With siblings rejected this clears current_bid; otherwise it tracks the next highest
            sold.current_bid_cents = await self._listings.sync_current_bid(db, listing_id, now)

            bidder = await self._users.get_user(accepted.bidder_id, db)
            sale = await self._ledger.append_sale(
                db, listing_id, accepted.bidder_id, bidder.public_name,
                accepted.amount_cents, now,
            )
            return _AcceptOutcome(accepted, sold, sale, rejected)

        outcome = await retry_once_on_conflict(
            lambda: run_in_transaction(db, _accept),
            lambda: ListingNoLongerAvailableError(listing_id),
        )
        logger.info(
            "Bid accepted id=%s listing=%s price=%d rejected=%d",
            bid_id, listing_id, outcome.bid.amount_cents, len(outcome.rejected_bid_ids),
        )
        events: list[ChangeEvent] = [
            bid_updated(listing_id, bid_id, status=outcome.bid.status),
            *(
                bid_updated(listing_id, rid, status=BidStatus.REJECTED.value)
                for rid in outcome.rejected_bid_ids
            ),
            listing_changed(
                listing_id,
                status=outcome.listing.status,
                price_cents=outcome.listing.price_cents,
                current_bid_cents=outcome.listing.current_bid_cents,
            ),
            sale_inserted(listing_id, outcome.sale.id, price_cents=outcome.sale.price_cents),
        ]
        await self._feed.publish(events)
        return AcceptBidResponse.build(
            outcome.bid, outcome.listing, outcome.sale, outcome.rejected_bid_ids
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def list_bids(
        self, db: AsyncSession, listing_id: str, status: str | None = BidStatus.OPEN.value
    ) -> BidListResponse:
        listing = await self._listings.get(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        bids = await self._bids.list_for_listing(db, listing_id, status)
        return BidListResponse(
            listing_id=listing_id,
            current_bid_cents=listing.current_bid_cents,
            items=[BidResponse.from_domain(b) for b in bids],
        )

    # ------------------------------------------------------------------
    # Expiry sweep
    # ------------------------------------------------------------------

    async def sweep_expired_bids(
        self, db: AsyncSession, now: datetime | None = None
    ) -> SweepResponse:
        """Apply time-based transitions to every listing. Idempotent."""
        result = await self._sweep(db, now or utc_now(), None)
        if not result.is_empty:
            logger.info(
                "Sweep: pending=%d expired=%d bids_expired=%d",
                len(result.listings_pending),
                len(result.listings_expired),
                len(result.bids_expired),
            )
        return SweepResponse.from_result(result)

    async def sweep_listing(
        self, db: AsyncSession, listing_id: str, now: datetime | None = None
    ) -> SweepResult:
        """Lazy, single-listing sweep run before reads and writes of that listing.

        A conflict here only means another writer holds the row; the periodic
        sweeper will catch up, so it is logged and the caller proceeds.
        """
        try:
            return await self._sweep(db, now or utc_now(), listing_id)
        except ConflictError as e:
            logger.warning("Lazy sweep of listing %s skipped: %s", listing_id, e.message)
            return SweepResult()

    async def _sweep(
        self, db: AsyncSession, now: datetime, listing_id: str | None
    ) -> SweepResult:
        async def _run() -> SweepResult:
            result = SweepResult()
            # (a) bids that lapsed before min(now, bid_end_time), then resync current_bid
            result.bids_expired = await self._bids.expire_past_due(db, now, listing_id)
            for lid in {lid for _, lid in result.bids_expired}:
                await self._listings.sync_current_bid(db, lid, now)
            # (b) deadline passed: pending when a bid is still outstanding, else expired
            for lid, status in await self._listings.close_bidding(db, now, listing_id):
                if status == ListingStatus.PENDING.value:
                    result.listings_pending.append(lid)
                else:
                    result.listings_expired.append(lid)
            return result

        result = await run_in_transaction(db, _run)
        if not result.is_empty:
            await self._feed.publish(_sweep_events(result))
        return result


def _sweep_events(result: SweepResult) -> list[ChangeEvent]:
    events: list[ChangeEvent] = [
        bid_updated(lid, bid_id, status=BidStatus.EXPIRED.value)
        for bid_id, lid in result.bids_expired
    ]
    events += [
        listing_changed(lid, status=ListingStatus.PENDING.value)
        for lid in result.listings_pending
    ]
    events += [
        listing_changed(lid, status=ListingStatus.EXPIRED.value)
        for lid in result.listings_expired
    ]
    events += [
        listing_changed(lid)
        for lid in {lid for _, lid in result.bids_expired}
        - set(result.listings_pending)
        - set(result.listings_expired)
    ]
    return events
