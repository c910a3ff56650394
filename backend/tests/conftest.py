"""Pytest fixtures and shared test configuration.

The app reads its settings at import time, so the environment is pinned
here before anything from `aichat` is imported:

    - DATABASE_URL points at a throwaway SQLite file (aiosqlite)
    - every provider key is blank, so chat falls through to the offline
      canned replies unless a test patches a provider in

Fixtures:
    - client: HTTPX AsyncClient bound to the real FastAPI app over
      ASGITransport, with fresh tables for every test
    - logged_in_client: same, with a registered + logged-in user
"""

import os
import tempfile
from collections.abc import AsyncGenerator

_DB_DIR = tempfile.mkdtemp(prefix="aichat-tests-")

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["OPENAI_API_KEY"] = ""
os.environ["GOOGLE_API_KEY"] = ""
os.environ["HF_TOKEN"] = ""
os.environ["OFFLINE_FALLBACK_ENABLED"] = "true"
os.environ["SESSION_SECRET"] = "test-session-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from aichat.core.database import Base, engine, init_db  # noqa: E402
from aichat.main import app  # noqa: E402


@pytest.fixture
async def database() -> AsyncGenerator[None]:
    """Create the schema (plus the default conversation) and drop it afterwards."""
    await init_db()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest.fixture
async def client(database) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    ASGITransport does not run the lifespan; the `database` fixture does
    the same setup.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def logged_in_client(client: AsyncClient) -> AsyncClient:
    response = await client.post(
        "/api/register",
        json={"username": "alice", "password": "wonderland"},
    )
    assert response.status_code == 201
    return client
