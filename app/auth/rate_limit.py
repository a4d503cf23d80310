"""Token bucket rate limiter backed by Redis."""

import time

import redis.asyncio as aioredis
from fastapi import Depends, HTTPException, Request, Response

from app.config import settings
from app.redis import get_redis
from app.utils.crypto import verify_session_token

# Lua script for atomic token bucket check-and-consume
_TOKEN_BUCKET_SCRIPT = """
local key = KEYS[1]
local capacity = tonumber(ARGV[1])
local refill_rate = tonumber(ARGV[2])
local now = tonumber(ARGV[3])

local bucket = redis.call('HMGET', key, 'tokens', 'last_refill')
local tokens = tonumber(bucket[1])
local last_refill = tonumber(bucket[2])

if tokens == nil then
    tokens = capacity
    last_refill = now
end

local elapsed = now - last_refill
local new_tokens = math.min(capacity, tokens + elapsed * (refill_rate / 60.0))

if new_tokens >= 1 then
    new_tokens = new_tokens - 1
    redis.call('HMSET', key, 'tokens', new_tokens, 'last_refill', now)
    redis.call('EXPIRE', key, 120)
    return {1, math.floor(new_tokens), math.floor((1 - (new_tokens - math.floor(new_tokens))) * 60 / refill_rate)}
else
    local retry_after = math.ceil((1 - new_tokens) * 60 / refill_rate)
    redis.call('HMSET', key, 'tokens', new_tokens, 'last_refill', now)
    redis.call('EXPIRE', key, 120)
    return {0, 0, retry_after}
end
"""


def _get_rate_config(method: str, path: str) -> tuple[int, int, str]:
    """Return (capacity, refill_per_min, category) based on endpoint."""
    if path.startswith("/admin"):
        return (
            settings.rate_limit_admin_capacity,
            settings.rate_limit_admin_refill_per_min,
            "admin",
        )
    if method in ("POST", "PATCH", "DELETE"):
        # Bid placement gets its own bucket so vendors cannot spam owners
        if path.rstrip("/").endswith("/bids"):
            return (
                settings.rate_limit_bid_capacity,
                settings.rate_limit_bid_refill_per_min,
                "bid",
            )
        # Job lifecycle endpoints get tighter limits
        if "/jobs" in path:
            return (
                settings.rate_limit_job_lifecycle_capacity,
                settings.rate_limit_job_lifecycle_refill_per_min,
                "job_lifecycle",
            )
        return (
            settings.rate_limit_write_capacity,
            settings.rate_limit_write_refill_per_min,
            "write",
        )
    return (
        settings.rate_limit_read_capacity,
        settings.rate_limit_read_refill_per_min,
        "read",
    )


def _get_client_ip(request: Request) -> str:
    """Extract client IP, respecting X-Forwarded-For for reverse proxies."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


def _bucket_subject(request: Request) -> str:
    """Bucket by the session's user id when the token verifies, else by client IP.

    Unsigned or expired tokens fall back to the IP bucket, so nobody can
    spend another user's allowance by putting their id in a header.
    """
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        user_id = verify_session_token(auth_header[7:].strip())
        if user_id is not None:
            return str(user_id)
    return f"ip:{_get_client_ip(request)}"


async def check_rate_limit(
    request: Request,
    response: Response,
    redis: aioredis.Redis = Depends(get_redis),
) -> None:
    """Rate limit dependency."""
    if not settings.rate_limit_enabled:
        return

    method = request.method.upper()
    path = request.url.path
    capacity, refill_rate, category = _get_rate_config(method, path)

    bucket_key = f"ratelimit:{_bucket_subject(request)}:{category}"
    now = time.time()

    result = await redis.eval(
        _TOKEN_BUCKET_SCRIPT, 1, bucket_key, capacity, refill_rate, now
    )

    allowed, remaining, retry_after = int(result[0]), int(result[1]), int(result[2])

    response.headers["X-RateLimit-Limit"] = str(capacity)
    response.headers["X-RateLimit-Remaining"] = str(remaining)

    if not allowed:
        response.headers["Retry-After"] = str(retry_after)
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
