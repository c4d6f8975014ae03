"""RateLimitRepository: concrete implementation of RateLimitRepositoryProtocol.

The (user, action) window is serialized with a transaction-scoped advisory
lock, so a burst of concurrent requests queues behind the first one instead of
all reading the same count. The lock is released by COMMIT/ROLLBACK.

Transaction ownership: the CALLER commits or rolls back.
"""

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_common.errors import InternalError
from src.rm_ratelimit.domain.models import RateLimitRecord

_LOCK_WINDOW_SQL = text("""
    SELECT pg_advisory_xact_lock(hashtext(:user_id), hashtext(:action_type))
""")

_PURGE_EXPIRED_SQL = text("""
    DELETE FROM rate_limits
    WHERE user_id = :user_id
      AND action_type = :action_type
      AND expires_at <= :now
""")

_COUNT_ACTIVE_SQL = text("""
    SELECT COUNT(*)
    FROM rate_limits
    WHERE user_id = :user_id
      AND action_type = :action_type
      AND expires_at > :now
""")

_OLDEST_ACTIVE_SQL = text("""
    SELECT MIN(expires_at)
    FROM rate_limits
    WHERE user_id = :user_id
      AND action_type = :action_type
      AND expires_at > :now
""")

_INSERT_SQL = text("""
    INSERT INTO rate_limits (user_id, action_type, created_at, expires_at)
    VALUES (:user_id, :action_type, :created_at, :expires_at)
    RETURNING id, user_id, action_type, created_at, expires_at
""")


def _row_to_record(row: object) -> RateLimitRecord:
    return RateLimitRecord(
        id=str(row.id),  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        action_type=row.action_type,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        expires_at=row.expires_at,  # type: ignore[attr-defined]
    )


class RateLimitRepository:
    async def lock_window(self, db: AsyncSession, user_id: str, action_type: str) -> None:
        await db.execute(_LOCK_WINDOW_SQL, {"user_id": user_id, "action_type": action_type})

    async def purge_expired(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> int:
        result = await db.execute(
            _PURGE_EXPIRED_SQL,
            {"user_id": user_id, "action_type": action_type, "now": now},
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def count_active(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> int:
        result = await db.execute(
            _COUNT_ACTIVE_SQL,
            {"user_id": user_id, "action_type": action_type, "now": now},
        )
        return int(result.scalar_one())

    async def oldest_active_expiry(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> datetime | None:
        result = await db.execute(
            _OLDEST_ACTIVE_SQL,
            {"user_id": user_id, "action_type": action_type, "now": now},
        )
        return result.scalar_one_or_none()

    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        action_type: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> RateLimitRecord:
        result = await db.execute(
            _INSERT_SQL,
            {
                "user_id": user_id,
                "action_type": action_type,
                "created_at": created_at,
                "expires_at": expires_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("rate_limits insert returned no rows")
        return _row_to_record(row)
