"""Repository Protocol: dependency inversion for testability.

Unit tests inject a mock or an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.rm_ratelimit.domain.models import RateLimitRecord


class RateLimitRepositoryProtocol(Protocol):
    async def lock_window(self, db: AsyncSession, user_id: str, action_type: str) -> None: ...

    async def purge_expired(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> int: ...

    async def count_active(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> int: ...

    async def oldest_active_expiry(
        self, db: AsyncSession, user_id: str, action_type: str, now: datetime
    ) -> datetime | None: ...

    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        action_type: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> RateLimitRecord: ...
