# blockcms/middleware/ratelimit.py
"""
Fixed-window rate limiting for the sensitive public endpoints.

The counter store is an explicit, injectable object (``app.state.rate_limit_store``):
in-memory for a single process, Redis when several instances share limits.
Its lifecycle is owned by the app: built in ``create_app``, swept
periodically from the lifespan task, closed on shutdown.

Store methods are coroutines so the Redis store never blocks the event loop.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis import asyncio as aioredis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from blockcms.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_seconds: int


RATE_LIMITS: Dict[str, RateLimitRule] = {
    "auth": RateLimitRule(limit=5, window_seconds=15 * 60),
    "form_submission": RateLimitRule(limit=10, window_seconds=60 * 60),
    "api": RateLimitRule(limit=100, window_seconds=15 * 60),
    "contact": RateLimitRule(limit=3, window_seconds=60 * 60),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # epoch seconds

    def retry_after(self, now: Optional[float] = None) -> int:
        return max(1, self.reset_at - int(now if now is not None else time.time()))

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


class RateLimitStore(Protocol):
    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult: ...

    async def sweep(self) -> int: ...

    async def close(self) -> None: ...


# ===================== Stores =====================

class InMemoryRateLimitStore:
    """Per-process counters: key -> (reset_at, count). Thread-safe."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._store: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        now = int(self._clock())
        with self._lock:
            reset_at, count = self._store.get(key, (0, 0))
            if reset_at <= now:
                reset_at, count = now + window_seconds, 0
            count += 1
            self._store[key] = (reset_at, count)
        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at=reset_at,
        )

    async def sweep(self) -> int:
        """Drop expired windows. Returns how many keys were removed."""
        now = int(self._clock())
        with self._lock:
            expired = [k for k, (reset_at, _) in self._store.items() if reset_at <= now]
            for k in expired:
                del self._store[k]
        return len(expired)

    async def close(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class RedisRateLimitStore:
    """
    Shared counters on ``redis.asyncio``. One MULTI per hit:
    ``SET key 0 EX window NX`` opens the window with its expiry already armed,
    then ``INCR`` and ``TTL``. Redis expires windows itself.
    """

    def __init__(self, client: aioredis.Redis, prefix: str = "ratelimit:", clock: Callable[[], float] = time.time):
        self._client = client
        self._prefix = prefix
        self._clock = clock

    async def hit(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        rkey = f"{self._prefix}{key}"
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(rkey, 0, ex=window_seconds, nx=True)
            pipe.incr(rkey)
            pipe.ttl(rkey)
            _, count, ttl = await pipe.execute()
        count, ttl = int(count), int(ttl)
        if ttl < 0:  # key written without expiry by something else
            await self._client.expire(rkey, window_seconds)
            ttl = window_seconds
        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at=int(self._clock()) + ttl,
        )

    async def sweep(self) -> int:
        return 0

    async def close(self) -> None:
        await self._client.aclose()


def build_rate_limit_store() -> RateLimitStore:
    if settings.RATELIMIT_REDIS_URL:
        logger.info("Rate limiting backed by Redis")
        return RedisRateLimitStore(aioredis.Redis.from_url(settings.RATELIMIT_REDIS_URL))
    return InMemoryRateLimitStore()


async def sweep_periodically(store: RateLimitStore, interval_seconds: float) -> None:
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            removed = await store.sweep()
        except Exception:
            logger.exception("Rate limit sweep failed")
            continue
        if removed:
            logger.debug("Rate limit sweep removed %d expired windows", removed)


# ===================== Middleware =====================

def client_identifier(request: Request) -> str:
    """
    The peer address only. X-Forwarded-For from trusted proxies is applied
    upstream by ProxyHeadersMiddleware (``FORWARDED_ALLOW_IPS``); a client-set
    header must not pick its own bucket.
    """
    return request.client.host if request.client else "unknown"


def rule_for(method: str, path: str) -> Optional[str]:
    if method != "POST":
        return None
    if path in ("/admin/login", f"{settings.API_V1_STR}/auth/login") or path.startswith("/api/auth/reset-password"):
        return "auth"
    if path == "/api/contact":
        return "contact"
    if path.startswith("/api/newsletter"):
        return "form_submission"
    if path.startswith(f"{settings.API_V1_STR}/content/") and path.endswith("/preview-token"):
        return "api"
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if not settings.RATELIMIT_ENABLED:
            return await call_next(request)

        store: Optional[RateLimitStore] = getattr(request.app.state, "rate_limit_store", None)
        rule_name = rule_for(request.method.upper(), request.url.path or "")
        if store is None or rule_name is None:
            return await call_next(request)

        rule = RATE_LIMITS[rule_name]
        key = f"{rule_name}:{client_identifier(request)}"
        result = await store.hit(key, rule.limit, rule.window_seconds)
        if not result.allowed:
            logger.warning("Rate limit exceeded for %s", key)
            headers = result.headers()
            headers["Retry-After"] = str(result.retry_after())
            return JSONResponse(
                {"detail": "Too many requests. Please try again later."},
                status_code=429,
                headers=headers,
            )

        response = await call_next(request)
        for k, v in result.headers().items():
            response.headers[k] = v
        return response
