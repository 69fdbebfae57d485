"""
Fixed-window rate limiting for the public and auth endpoints.

Windows are counted in process memory. With REDIS_URL set, a window is seeded
from Redis the first time a process sees the key and its count is pushed back
every few seconds, so several workers converge on roughly the same limit
without a Redis round trip on every request.
"""

import logging
import os
import time
from dataclasses import dataclass
from threading import Lock
from typing import Optional

import redis
from fastapi import HTTPException, Request

logger = logging.getLogger(__name__)

REDIS_SYNC_INTERVAL = 10
PRUNE_INTERVAL = 60

redis_client: Optional[redis.Redis] = None
_redis_unavailable = False


@dataclass
class Window:
    count: int
    resets_at: int
    synced_at: int = 0

    def expired(self, now: int) -> bool:
        return now >= self.resets_at


windows: dict[str, Window] = {}
windows_lock = Lock()
_last_prune = 0


def _masked(redis_url: str) -> str:
    if "@" not in redis_url:
        return "****"
    scheme = redis_url.split(":", 1)[0]
    return f"{scheme}://****@{redis_url.rsplit('@', 1)[1]}"


def get_redis_client() -> Optional[redis.Redis]:
    """Shared Redis connection, or None when limits are per process only"""
    global redis_client, _redis_unavailable

    if redis_client is not None or _redis_unavailable:
        return redis_client

    redis_url = os.getenv("REDIS_URL")
    if not redis_url:
        _redis_unavailable = True
        return None

    try:
        client = redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Redis at {_masked(redis_url)} unreachable: {e}")
        _redis_unavailable = True
        return None

    logger.info(f"📡 Rate limits shared through Redis at {_masked(redis_url)}")
    redis_client = client
    return redis_client


def _prune(now: int):
    global _last_prune
    if now - _last_prune < PRUNE_INTERVAL:
        return
    _last_prune = now
    stale = [key for key, window in windows.items() if window.expired(now)]
    for key in stale:
        del windows[key]
    if stale:
        logger.debug(f"🧹 Dropped {len(stale)} expired rate limit windows")


def _open_window(key: str, window_seconds: int, now: int, client: Optional[redis.Redis]) -> Window:
    window = Window(count=0, resets_at=now + window_seconds, synced_at=now)
    if client is None:
        return window
    try:
        remote_count = client.get(key)
        remote_ttl = client.ttl(key)
    except redis.RedisError as e:
        logger.warning(f"⚠️ Could not read {key} from Redis: {e}")
        return window
    if remote_count and remote_ttl > 0:
        window.count = int(remote_count)
        window.resets_at = now + remote_ttl
    return window


def check_rate_limit(
    key: str, limit: int, window_seconds: int, client: Optional[redis.Redis] = None
) -> tuple[bool, int, int]:
    """
    Count one request against ``key``.

    Returns (allowed, count, seconds until the window resets). Rejected
    requests are not counted.
    """
    now = int(time.time())

    with windows_lock:
        _prune(now)

        window = windows.get(key)
        if window is None:
            window = windows[key] = _open_window(key, window_seconds, now, client)
        elif window.expired(now):
            window.count = 0
            window.resets_at = now + window_seconds
            window.synced_at = 0

        allowed = window.count < limit
        if allowed:
            window.count += 1

        if client is not None and now - window.synced_at >= REDIS_SYNC_INTERVAL:
            try:
                client.set(key, window.count, ex=max(1, window.resets_at - now))
                window.synced_at = now
            except redis.RedisError as e:
                logger.warning(f"⚠️ Could not push {key} to Redis: {e}")

        return allowed, window.count, max(0, window.resets_at - now)


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def create_rate_limiter(limit: int, window_seconds: int, key_prefix: str = "rate_limit"):
    """
    Build a per-IP limit as a FastAPI dependency:

        rate_limit_login = create_rate_limiter(limit=10, window_seconds=60, key_prefix="auth_email")

        @router.post("/auth/email")
        async def login(data: EmailLoginRequest, _: None = Depends(rate_limit_login)):
            ...
    """

    async def rate_limiter(request: Request):
        key = f"{key_prefix}:{client_ip(request)}"
        allowed, count, retry_after = check_rate_limit(key, limit, window_seconds, get_redis_client())
        if not allowed:
            logger.warning(f"🚫 Rate limit exceeded for {key} ({count}/{limit})")
            raise HTTPException(
                status_code=429,
                detail=f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds.",
                headers={"Retry-After": str(retry_after)},
            )

    return rate_limiter


def reset_rate_limits():
    with windows_lock:
        windows.clear()
