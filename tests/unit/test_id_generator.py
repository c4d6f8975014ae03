"""Tests for rm_common.id_generator and rm_common.datetime_utils."""

from datetime import UTC, datetime, timedelta
from unittest.mock import patch

from src.rm_common.datetime_utils import seconds_until, utc_now
from src.rm_common.id_generator import SnowflakeIdGenerator


class TestSnowflakeIdGenerator:
    def test_returns_str(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        assert isinstance(gen.next_id(), str)

    def test_unique_ids(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        ids = {gen.next_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_monotonically_increasing(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=1)
        prev = int(gen.next_id())
        for _ in range(100):
            current = int(gen.next_id())
            assert current > prev
            prev = current

    def test_clock_step_back_still_increases(self) -> None:
        gen = SnowflakeIdGenerator(machine_id=2)
        first = int(gen.next_id())
        real_ms = gen._current_ms()
        with patch.object(gen, "_current_ms", return_value=real_ms - 5_000):
            second = int(gen.next_id())
        assert second > first


class TestUtcNow:
    def test_returns_aware_datetime(self) -> None:
        now = utc_now()
        assert isinstance(now, datetime)
        assert now.tzinfo is not None

    def test_is_utc(self) -> None:
        assert utc_now().utcoffset() == timedelta(0)


class TestSecondsUntil:
    def test_rounds_up_partial_seconds(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        assert seconds_until(now + timedelta(seconds=10, milliseconds=1), now) == 11

    def test_never_below_one(self) -> None:
        now = datetime(2026, 1, 1, tzinfo=UTC)
        assert seconds_until(now - timedelta(seconds=5), now) == 1
        assert seconds_until(now, now) == 1
