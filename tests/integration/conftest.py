"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.

Requires PostgreSQL + Redis and `alembic upgrade head`. Usernames carry a
random suffix so the suite can run repeatedly against the same database.
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app

PASSWORD = "TestPass123!"


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client: keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def login_as(client: AsyncClient) -> Callable[[str, str], Awaitable[dict[str, str]]]:
    """Register a fresh user with `role` and return its Authorization header."""

    async def _login(prefix: str, role: str = "buyer") -> dict[str, str]:
        username = f"{prefix}_{uuid.uuid4().hex[:8]}"
        reg = await client.post("/api/v1/auth/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": PASSWORD,
            "role": role,
        })
        assert reg.status_code == 201, reg.text
        resp = await client.post("/api/v1/auth/login", json={
            "username": username,
            "password": PASSWORD,
        })
        token = resp.json()["data"]["access_token"]
        return {"Authorization": f"Bearer {token}"}

    return _login
