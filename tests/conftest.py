"""Test configuration and fixtures.

Each test gets a throwaway SQLite database (via aiosqlite) under tmp_path, or
the database named by TEST_DATABASE_URL when set. Every request opens its own
session from the per-test factory, the same way production requests do, so
concurrent requests exercise the real locking paths.
"""

from collections.abc import AsyncGenerator
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.redis import get_redis


class StubRedis:
    """Answers the token bucket script with a fixed verdict."""

    def __init__(self, allowed: bool = True, remaining: int = 99, retry_after: int = 0) -> None:
        self.allowed = allowed
        self.remaining = remaining
        self.retry_after = retry_after
        self.calls: list[tuple[Any, ...]] = []

    async def eval(self, script: str, numkeys: int, *args: Any) -> list[int]:
        self.calls.append(args)
        return [1 if self.allowed else 0, self.remaining, self.retry_after]


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolate_settings() -> None:
    """Snapshot settings before each test and restore after to prevent mutation bleed."""
    original = settings.model_dump()
    object.__setattr__(settings, "env", "test")
    object.__setattr__(settings, "dev_login_enabled", True)
    object.__setattr__(settings, "dev_deposit_enabled", True)
    object.__setattr__(settings, "rate_limit_enabled", False)
    yield  # type: ignore[misc]
    for key, value in original.items():
        object.__setattr__(settings, key, value)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:  # type: ignore[no-untyped-def]
    url = settings.test_database_url or f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def stub_redis() -> StubRedis:
    return StubRedis()


@pytest_asyncio.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    stub_redis: StubRedis,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client with overridden DB and Redis dependencies."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def override_get_redis() -> AsyncGenerator[StubRedis, None]:
        yield stub_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_session_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def create_user(
    client: AsyncClient,
    email: str,
    name: str = "Test User",
    role: str | None = None,
) -> tuple[str, dict[str, str]]:
    """Sign in through dev-login. Returns (user_id, auth headers)."""
    payload: dict[str, Any] = {"email": email, "name": name}
    if role is not None:
        payload["role"] = role
    resp = await client.post("/auth/dev-login", json=payload)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return body["user_id"], make_session_headers(body["token"])


async def fund_wallet(client: AsyncClient, headers: dict[str, str], amount: str) -> None:
    resp = await client.post("/wallet/deposit", json={"amount": amount}, headers=headers)
    assert resp.status_code == 201, resp.text


async def get_balances(client: AsyncClient, headers: dict[str, str]) -> tuple[Decimal, Decimal]:
    """Returns (available, escrow)."""
    resp = await client.get("/wallet", headers=headers)
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return Decimal(str(body["available_balance"])), Decimal(str(body["escrow_balance"]))


async def post_job(
    client: AsyncClient,
    headers: dict[str, str],
    title: str = "Fix leaking kitchen tap",
    category: str = "plumbing",
) -> dict:
    resp = await client.post(
        "/jobs",
        json={
            "title": title,
            "description": "Tap drips constantly, needs a new washer.",
            "category": category,
            "budget_min": "100.00",
            "budget_max": "500.00",
            "city": "Pune",
        },
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def place_bid(
    client: AsyncClient, headers: dict[str, str], job_id: str, amount: str
) -> dict:
    resp = await client.post(
        f"/jobs/{job_id}/bids",
        json={"amount": amount, "message": "Can do it tomorrow", "delivery_time": "1 day"},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
