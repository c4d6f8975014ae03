"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.rm_bidding.api.router import admin_router
from src.rm_bidding.api.router import router as bids_router
from src.rm_bidding.application.sweeper import BidSweeper
from src.rm_common.database import engine
from src.rm_common.errors import AppError
from src.rm_common.redis_client import close_redis, ping_redis
from src.rm_common.response import app_error_json
from src.rm_feed.api.router import router as feed_router
from src.rm_gateway.api.router import router as auth_router
from src.rm_gateway.middleware.request_log import RequestLogMiddleware
from src.rm_ledger.api.router import router as ledger_router
from src.rm_listing.api.router import router as listing_router
from src.rm_ratelimit.api.router import router as ratelimit_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the expiry sweeper. Shutdown: reverse."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await ping_redis()
    sweeper = BidSweeper(settings.BID_SWEEP_INTERVAL_SECONDS)
    sweeper.start()
    logger.info("%s started", settings.APP_NAME)
    yield
    await sweeper.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return app_error_json(exc, request)


app.include_router(auth_router, prefix="/api/v1")
app.include_router(listing_router, prefix="/api/v1")
app.include_router(bids_router, prefix="/api/v1")
app.include_router(ledger_router, prefix="/api/v1")
app.include_router(ratelimit_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(feed_router)


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
