"""Shared test fixtures."""

import os

# Settings are read at import time and JWT_SECRET has no default
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
# Minimum bcrypt cost keeps hashing tests fast
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    from src.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
