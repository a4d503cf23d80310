"""Tests for rate limiting (app/auth/rate_limit.py)."""

import uuid

import pytest
from httpx import AsyncClient
from starlette.requests import Request

from app.auth.rate_limit import _bucket_subject, _get_rate_config
from app.config import settings
from app.utils.crypto import issue_session_token
from tests.conftest import StubRedis


def _request(headers: dict[str, str], client_host: str = "10.0.0.1") -> Request:
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (client_host, 1234),
    })


def test_rate_config_categories() -> None:
    job_id = uuid.uuid4()
    assert _get_rate_config("GET", "/jobs")[2] == "read"
    assert _get_rate_config("POST", f"/jobs/{job_id}/bids")[2] == "bid"
    assert _get_rate_config("POST", f"/jobs/{job_id}/complete")[2] == "job_lifecycle"
    assert _get_rate_config("POST", "/wallet/withdraw")[2] == "write"
    assert _get_rate_config("GET", "/admin/reports")[2] == "admin"
    assert _get_rate_config("POST", "/admin/reports/x/resolve")[2] == "admin"


def test_bucket_subject_prefers_session_user() -> None:
    user_id = uuid.uuid4()
    token = issue_session_token(user_id)
    assert _bucket_subject(_request({"Authorization": f"Bearer {token}"})) == str(user_id)
    assert _bucket_subject(_request({})) == "ip:10.0.0.1"
    assert _bucket_subject(_request({"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})) == "ip:1.2.3.4"


def test_bucket_subject_ignores_unsigned_tokens() -> None:
    victim = str(uuid.uuid4())
    assert _bucket_subject(_request({"Authorization": f"Bearer {victim}.1.abc"})) == "ip:10.0.0.1"
    assert _bucket_subject(_request({"Authorization": "Bearer garbage"})) == "ip:10.0.0.1"


def test_job_lifecycle_limits_follow_settings() -> None:
    object.__setattr__(settings, "rate_limit_job_lifecycle_capacity", 7)
    object.__setattr__(settings, "rate_limit_job_lifecycle_refill_per_min", 2)
    assert _get_rate_config("POST", f"/jobs/{uuid.uuid4()}/complete") == (7, 2, "job_lifecycle")


@pytest.mark.asyncio
async def test_rate_limit_headers_present(client: AsyncClient, stub_redis: StubRedis) -> None:
    object.__setattr__(settings, "rate_limit_enabled", True)
    resp = await client.post("/auth/dev-login", json={"email": "rl@example.com", "name": "RL"})
    assert resp.status_code == 200
    assert "x-ratelimit-limit" in resp.headers
    assert "x-ratelimit-remaining" in resp.headers
    assert stub_redis.calls


@pytest.mark.asyncio
async def test_rate_limit_exceeded_returns_429(client: AsyncClient, stub_redis: StubRedis) -> None:
    object.__setattr__(settings, "rate_limit_enabled", True)
    stub_redis.allowed = False
    stub_redis.retry_after = 7
    resp = await client.post("/auth/dev-login", json={"email": "rl@example.com", "name": "RL"})
    assert resp.status_code == 429
    assert resp.json()["detail"] == "Rate limit exceeded"


@pytest.mark.asyncio
async def test_rate_limit_disabled_skips_redis(client: AsyncClient, stub_redis: StubRedis) -> None:
    resp = await client.get("/health")
    await client.post("/auth/dev-login", json={"email": "rl@example.com", "name": "RL"})
    assert resp.status_code == 200
    assert stub_redis.calls == []
