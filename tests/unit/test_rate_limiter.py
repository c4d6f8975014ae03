"""RateLimiter unit tests (mocked repository)."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.rm_common.errors import RateLimitedError
from src.rm_ratelimit.application.service import RateLimiter, bid_policy
from src.rm_ratelimit.domain.models import RateLimitPolicy, RateLimitRecord, RateLimitStatus

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)
POLICY = RateLimitPolicy(action_type="place_bid", max_attempts=5, window_seconds=300)


def _repo(active: int = 0, oldest: datetime | None = None) -> MagicMock:
    repo = MagicMock()
    repo.lock_window = AsyncMock()
    repo.purge_expired = AsyncMock(return_value=0)
    repo.count_active = AsyncMock(return_value=active)
    repo.oldest_active_expiry = AsyncMock(return_value=oldest)

    async def _insert(db, user_id, action_type, created_at, expires_at):  # type: ignore[no-untyped-def]
        return RateLimitRecord("r1", user_id, action_type, created_at, expires_at)

    repo.insert = AsyncMock(side_effect=_insert)
    return repo


class TestCheckAllowed:
    async def test_purges_before_counting(self) -> None:
        repo = _repo(active=4)
        calls: list[str] = []
        repo.purge_expired.side_effect = lambda *a: calls.append("purge") or 0
        repo.count_active.side_effect = lambda *a: calls.append("count") or 4

        allowed = await RateLimiter(repo).check_allowed(
            AsyncMock(), "u1", "place_bid", 5, 300, NOW
        )
        assert allowed is True
        assert calls == ["purge", "count"]

    async def test_blocked_at_max(self) -> None:
        limiter = RateLimiter(_repo(active=5))
        assert await limiter.check_allowed(AsyncMock(), "u1", "place_bid", 5, 300, NOW) is False


class TestRecordAttempt:
    async def test_expires_after_window(self) -> None:
        record = await RateLimiter(_repo()).record_attempt(
            AsyncMock(), "u1", "place_bid", 300, NOW
        )
        assert record.expires_at == NOW + timedelta(seconds=300)
        assert record.created_at == NOW


class TestAdmit:
    async def test_admitted_attempt_locks_then_records(self) -> None:
        repo = _repo(active=4)
        record = await RateLimiter(repo).admit(AsyncMock(), "u1", POLICY, NOW)
        repo.lock_window.assert_awaited_once()
        assert repo.lock_window.await_args.args[1:] == ("u1", "place_bid")
        repo.insert.assert_awaited_once()
        assert record.user_id == "u1"

    async def test_blocked_attempt_writes_nothing(self) -> None:
        repo = _repo(active=5, oldest=NOW + timedelta(seconds=42, milliseconds=300))
        with pytest.raises(RateLimitedError) as exc_info:
            await RateLimiter(repo).admit(AsyncMock(), "u1", POLICY, NOW)
        assert exc_info.value.retry_after_seconds == 43
        repo.insert.assert_not_awaited()

    async def test_retry_after_is_at_least_one_second(self) -> None:
        repo = _repo(active=5, oldest=NOW + timedelta(milliseconds=10))
        with pytest.raises(RateLimitedError) as exc_info:
            await RateLimiter(repo).admit(AsyncMock(), "u1", POLICY, NOW)
        assert exc_info.value.retry_after_seconds == 1


class TestStatus:
    async def test_status_is_read_only(self) -> None:
        repo = _repo(active=5, oldest=NOW + timedelta(seconds=120))
        status = await RateLimiter(repo).status(AsyncMock(), "u1", POLICY, NOW)
        assert status.blocked
        assert status.remaining_seconds(NOW) == 120
        repo.purge_expired.assert_not_awaited()
        repo.insert.assert_not_awaited()

    def test_not_blocked_has_no_countdown(self) -> None:
        status = RateLimitStatus("place_bid", 2, 5, NOW + timedelta(seconds=100))
        assert not status.blocked
        assert status.remaining_seconds(NOW) is None


def test_bid_policy_defaults() -> None:
    policy = bid_policy()
    assert (policy.action_type, policy.max_attempts, policy.window_seconds) == (
        "place_bid", 5, 300
    )
