"""RateLimiter: sliding-window gate for sensitive write actions.

Check-then-record is atomic per (user, action_type): `admit` takes a
transaction-scoped advisory lock on the pair before counting, so concurrent
requests from one user are serialized and cannot all pass the check before
any record is written.

Transaction ownership: the CALLER commits or rolls back. A rejected attempt
writes nothing; an admitted attempt is only durable if the gated action
commits in the same transaction.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.rm_common.datetime_utils import seconds_until, utc_now
from src.rm_common.enums import RateLimitAction
from src.rm_common.errors import RateLimitedError
from src.rm_ratelimit.domain.models import RateLimitPolicy, RateLimitRecord, RateLimitStatus
from src.rm_ratelimit.domain.repository import RateLimitRepositoryProtocol
from src.rm_ratelimit.infrastructure.persistence import RateLimitRepository

logger = logging.getLogger(__name__)


def bid_policy() -> RateLimitPolicy:
    return RateLimitPolicy(
        action_type=RateLimitAction.PLACE_BID.value,
        max_attempts=settings.BID_RATE_LIMIT_MAX_ATTEMPTS,
        window_seconds=settings.BID_RATE_LIMIT_WINDOW_SECONDS,
    )


class RateLimiter:
    def __init__(self, repo: RateLimitRepositoryProtocol | None = None) -> None:
        self._repo: RateLimitRepositoryProtocol = repo or RateLimitRepository()

    async def check_allowed(
        self,
        db: AsyncSession,
        user_id: str,
        action_type: str,
        max_attempts: int,
        window_seconds: int,
        now: datetime | None = None,
    ) -> bool:
        """Purge expired records for the pair, then True iff active count < max_attempts.

        window_seconds is accepted for symmetry with record_attempt; the window
        is already baked into each record's expires_at.
        """
        now = now or utc_now()
        await self._repo.purge_expired(db, user_id, action_type, now)
        active = await self._repo.count_active(db, user_id, action_type, now)
        return active < max_attempts

    async def record_attempt(
        self,
        db: AsyncSession,
        user_id: str,
        action_type: str,
        window_seconds: int,
        now: datetime | None = None,
    ) -> RateLimitRecord:
        """Insert one record expiring window_seconds from now. Does not check the limit."""
        now = now or utc_now()
        return await self._repo.insert(
            db, user_id, action_type, now, now + timedelta(seconds=window_seconds)
        )

    async def retry_after(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> int:
        oldest = await self._repo.oldest_active_expiry(db, user_id, action_type, now)
        if oldest is None:
            return 1
        return seconds_until(oldest, now)

    async def admit(
        self,
        db: AsyncSession,
        user_id: str,
        policy: RateLimitPolicy,
        now: datetime | None = None,
    ) -> RateLimitRecord:
        """Combined gate: lock the pair, check, then record.

        Raises RateLimitedError (nothing written) when the window is full.
        """
        now = now or utc_now()
        await self._repo.lock_window(db, user_id, policy.action_type)
        allowed = await self.check_allowed(
            db, user_id, policy.action_type, policy.max_attempts, policy.window_seconds, now
        )
        if not allowed:
            wait = await self.retry_after(db, user_id, policy.action_type, now)
            logger.info(
                "Rate limited user=%s action=%s retry_after=%ss",
                user_id, policy.action_type, wait,
            )
            raise RateLimitedError(wait, policy.action_type)
        return await self.record_attempt(
            db, user_id, policy.action_type, policy.window_seconds, now
        )

    async def status(
        self,
        db: AsyncSession,
        user_id: str,
        policy: RateLimitPolicy,
        now: datetime | None = None,
    ) -> RateLimitStatus:
        """Read-only snapshot for countdown display. Never purges or records."""
        now = now or utc_now()
        used = await self._repo.count_active(db, user_id, policy.action_type, now)
        oldest = await self._repo.oldest_active_expiry(db, user_id, policy.action_type, now)
        return RateLimitStatus(
            action_type=policy.action_type,
            attempts_used=used,
            max_attempts=policy.max_attempts,
            oldest_expires_at=oldest,
        )
