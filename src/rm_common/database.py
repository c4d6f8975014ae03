import logging
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TypeVar

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from config.settings import settings
from src.rm_common.errors import ConcurrentModificationError, ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Base(DeclarativeBase):
    """Shared declarative base for all ORM models across modules."""

    pass


engine: AsyncEngine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=20,
    max_overflow=10,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: yields an AsyncSession, auto-closes after request."""
    async with async_session_factory() as session:
        yield session


# SQLSTATEs that mean "another transaction got there first":
#   40001 serialization_failure, 40P01 deadlock_detected, 55P03 lock_not_available
_CONFLICT_SQLSTATES = frozenset({"40001", "40P01", "55P03"})

# Partial unique index guarding "at most one accepted bid per listing"
_ACCEPTED_BID_INDEX = "uq_bids_one_accepted_per_listing"


async def begin_locked_transaction(db: AsyncSession) -> None:
    """Start the transaction with a bounded lock wait.

    SET LOCAL only lives until COMMIT/ROLLBACK, so it must be the first
    statement of every check-then-act transaction.
    """
    await db.execute(text(f"SET LOCAL lock_timeout = {int(settings.LOCK_TIMEOUT_MS)}"))


def _sqlstate(exc: DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_conflict(exc: Exception) -> bool:
    """True when a DB error means a concurrent writer won the race."""
    if not isinstance(exc, DBAPIError):
        return False
    if isinstance(exc, IntegrityError) and _ACCEPTED_BID_INDEX in str(exc.orig):
        return True
    return _sqlstate(exc) in _CONFLICT_SQLSTATES


async def run_in_transaction(db: AsyncSession, work: Callable[[], Awaitable[T]]) -> T:
    """Run `work` as one bounded transaction: commit on success, rollback on any error.

    Lock timeouts, deadlocks and serialization failures surface as
    ConcurrentModificationError so callers can treat them as ConflictError.
    """
    try:
        await begin_locked_transaction(db)
        result = await work()
        await db.commit()
        return result
    except DBAPIError as e:
        await db.rollback()
        if is_conflict(e):
            raise ConcurrentModificationError(str(e.orig)) from e
        raise
    except Exception:
        await db.rollback()
        raise


async def retry_once_on_conflict(
    attempt: Callable[[], Awaitable[T]],
    exhausted: Callable[[], Exception],
) -> T:
    """Run `attempt`; on ConflictError re-run it once, then raise `exhausted()`."""
    try:
        return await attempt()
    except ConflictError as e:
        logger.warning("Conflict detected, retrying once: %s", e.message)
    try:
        return await attempt()
    except ConflictError as e:
        logger.warning("Conflict on retry, giving up: %s", e.message)
        raise exhausted() from e
