"""Periodic expiry sweeper: background asyncio task started in the app lifespan.

Each pass opens its own session and runs BiddingService.sweep_expired_bids.
A failed pass is logged and the loop carries on at the next interval.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from src.rm_bidding.application.service import BiddingService
from src.rm_common.database import async_session_factory

logger = logging.getLogger(__name__)


class BidSweeper:
    def __init__(
        self,
        interval_seconds: float,
        service: BiddingService | None = None,
        session_factory: Callable[[], Any] | None = None,
    ) -> None:
        self._interval = interval_seconds
        self._service = service or BiddingService()
        self._session_factory = session_factory or async_session_factory
        self._task: asyncio.Task[None] | None = None
        self._stop = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> bool:
        """One sweep pass; False when it failed. Never raises except on cancellation."""
        try:
            async with self._session_factory() as db:
                await self._service.sweep_expired_bids(db)
        except Exception:
            # Includes raw driver errors (e.g. ConnectionRefusedError) SQLAlchemy does not wrap
            logger.exception("Sweep pass failed")
            return False
        return True

    async def _loop(self) -> None:
        logger.info("Bid sweeper started, interval=%ss", self._interval)
        while not self._stop.is_set():
            await self.run_once()
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
        logger.info("Bid sweeper stopped")

    def start(self) -> None:
        if self._interval <= 0 or self._task is not None:
            return
        self._stop.clear()
        self._task = asyncio.create_task(self._loop(), name="bid-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop.set()
        await self._task
        self._task = None
