"""BidSweeper: periodic pass, disabled interval and surviving failed passes."""

import asyncio
import contextlib
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.rm_bidding.application.sweeper import BidSweeper


def _session_factory(session: object | None = None):  # type: ignore[no-untyped-def]
    session = session if session is not None else MagicMock()

    @contextlib.asynccontextmanager
    async def _factory():  # type: ignore[no-untyped-def]
        yield session

    return _factory


async def _wait_for_calls(mock: AsyncMock, count: int, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while mock.await_count < count:
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


class TestRunOnce:
    async def test_sweeps_with_fresh_session(self) -> None:
        session = MagicMock()
        service = MagicMock()
        service.sweep_expired_bids = AsyncMock()
        sweeper = BidSweeper(60, service, _session_factory(session))

        assert await sweeper.run_once() is True
        service.sweep_expired_bids.assert_awaited_once_with(session)

    async def test_driver_error_is_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        service = MagicMock()
        service.sweep_expired_bids = AsyncMock(side_effect=ConnectionRefusedError("db down"))
        sweeper = BidSweeper(60, service, _session_factory())

        with caplog.at_level(logging.ERROR, logger="src.rm_bidding.application.sweeper"):
            assert await sweeper.run_once() is False

        assert "Sweep pass failed" in caplog.text

    async def test_session_open_failure_is_logged_not_raised(self) -> None:
        @contextlib.asynccontextmanager
        async def _broken():  # type: ignore[no-untyped-def]
            raise OSError("no route to host")
            yield

        service = MagicMock()
        service.sweep_expired_bids = AsyncMock()
        sweeper = BidSweeper(60, service, _broken)

        assert await sweeper.run_once() is False
        service.sweep_expired_bids.assert_not_awaited()


class TestLifecycle:
    async def test_zero_interval_disables_sweeper(self) -> None:
        service = MagicMock()
        service.sweep_expired_bids = AsyncMock()
        sweeper = BidSweeper(0, service, _session_factory())

        sweeper.start()
        await asyncio.sleep(0.01)

        assert sweeper.running is False
        service.sweep_expired_bids.assert_not_awaited()
        await sweeper.stop()

    async def test_loop_survives_failed_pass(self) -> None:
        service = MagicMock()
        calls = {"n": 0}

        async def _sweep(db):  # type: ignore[no-untyped-def]
            calls["n"] += 1
            if calls["n"] == 1:
                raise ConnectionRefusedError("db down")

        service.sweep_expired_bids = AsyncMock(side_effect=_sweep)
        sweeper = BidSweeper(0.01, service, _session_factory())

        sweeper.start()
        try:
            await _wait_for_calls(service.sweep_expired_bids, 3)
            assert sweeper.running is True
        finally:
            await sweeper.stop()

        assert sweeper.running is False

    async def test_stop_interrupts_the_wait(self) -> None:
        service = MagicMock()
        service.sweep_expired_bids = AsyncMock()
        sweeper = BidSweeper(3600, service, _session_factory())

        sweeper.start()
        await _wait_for_calls(service.sweep_expired_bids, 1)
        await asyncio.wait_for(sweeper.stop(), timeout=1.0)

        assert sweeper.running is False
        assert service.sweep_expired_bids.await_count == 1

    async def test_start_twice_keeps_one_task(self) -> None:
        service = MagicMock()
        service.sweep_expired_bids = AsyncMock()
        sweeper = BidSweeper(3600, service, _session_factory())

        sweeper.start()
        sweeper.start()
        await _wait_for_calls(service.sweep_expired_bids, 1)
        await sweeper.stop()

        assert service.sweep_expired_bids.await_count == 1
