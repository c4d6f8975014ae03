"""Pydantic schemas for rm_ratelimit API responses."""

from datetime import datetime

from pydantic import BaseModel

from src.rm_ratelimit.domain.models import RateLimitStatus


class RateLimitStatusResponse(BaseModel):
    action_type: str
    blocked: bool
    remaining_seconds: int | None
    attempts_used: int
    max_attempts: int

    @classmethod
    def from_domain(cls, status: RateLimitStatus, now: datetime) -> "RateLimitStatusResponse":
        return cls(
            action_type=status.action_type,
            blocked=status.blocked,
            remaining_seconds=status.remaining_seconds(now),
            attempts_used=status.attempts_used,
            max_attempts=status.max_attempts,
        )
