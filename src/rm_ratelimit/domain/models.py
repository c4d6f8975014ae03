"""Domain models for rm_ratelimit: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.rm_common.datetime_utils import seconds_until


@dataclass(frozen=True)
class RateLimitPolicy:
    action_type: str
    max_attempts: int
    window_seconds: int


@dataclass
class RateLimitRecord:
    """One gated attempt. Created, then ignored once expires_at passes; never updated."""

    id: str
    user_id: str
    action_type: str
    created_at: datetime
    expires_at: datetime


@dataclass
class RateLimitStatus:
    """Read-only view of a (user, action) window, for countdown display."""

    action_type: str
    attempts_used: int
    max_attempts: int
    oldest_expires_at: datetime | None

    @property
    def blocked(self) -> bool:
        return self.attempts_used >= self.max_attempts

    def remaining_seconds(self, now: datetime) -> int | None:
        """Seconds until the oldest blocking record frees a slot; None when not blocked."""
        if not self.blocked or self.oldest_expires_at is None:
            return None
        return seconds_until(self.oldest_expires_at, now)
