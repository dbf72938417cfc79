# tests/test_rate_limit.py
from __future__ import annotations

import asyncio

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from blockcms.core.settings import settings
from blockcms.main import app
from blockcms.middleware.ratelimit import (
    InMemoryRateLimitStore,
    RedisRateLimitStore,
    client_identifier,
    rule_for,
)


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakePipeline:
    """Queues commands and applies them together on ``execute``, like MULTI/EXEC."""

    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._queued = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def set(self, key, value, ex=None, nx=False):
        self._queued.append(("set", key, value, ex, nx))
        return self

    def incr(self, key):
        self._queued.append(("incr", key))
        return self

    def ttl(self, key):
        self._queued.append(("ttl", key))
        return self

    async def execute(self):
        self._redis.executed += 1
        out = []
        for cmd, key, *args in self._queued:
            if cmd == "set":
                value, ex, nx = args
                if nx and key in self._redis.values:
                    out.append(None)
                    continue
                self._redis.values[key] = int(value)
                if ex is not None:
                    self._redis.ttls[key] = ex
                out.append(True)
            elif cmd == "incr":
                self._redis.values[key] = self._redis.values.get(key, 0) + 1
                out.append(self._redis.values[key])
            else:
                out.append(self._redis.ttls.get(key, -1))
        self._queued = []
        return out


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the store."""

    def __init__(self):
        self.values: dict[str, int] = {}
        self.ttls: dict[str, int] = {}
        self.executed = 0
        self.closed = False

    def pipeline(self, transaction=True):
        assert transaction
        return FakePipeline(self)

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def aclose(self):
        self.closed = True


def _run(coro):
    return asyncio.run(coro)


def test_in_memory_store_fixed_window():
    clock = FakeClock()
    store = InMemoryRateLimitStore(clock=clock)

    results = [_run(store.hit("contact:1.2.3.4", 3, 3600)) for _ in range(4)]
    assert [r.allowed for r in results] == [True, True, True, False]
    assert [r.remaining for r in results] == [2, 1, 0, 0]
    assert results[-1].retry_after(now=clock.now) == 3600

    # other keys are independent
    assert _run(store.hit("contact:5.6.7.8", 3, 3600)).allowed

    clock.now += 3600
    assert _run(store.hit("contact:1.2.3.4", 3, 3600)).allowed


def test_in_memory_sweep_drops_expired_windows():
    clock = FakeClock()
    store = InMemoryRateLimitStore(clock=clock)

    async def scenario():
        await store.hit("a", 5, 10)
        await store.hit("b", 5, 100)
        clock.now += 50
        assert await store.sweep() == 1
        assert len(store) == 1
        await store.close()

    _run(scenario())
    assert len(store) == 0


def test_redis_store_opens_window_with_expiry_in_one_transaction():
    client = FakeRedis()
    store = RedisRateLimitStore(client, clock=FakeClock())

    async def scenario():
        first = await store.hit("auth:9.9.9.9", 2, 900)
        assert first.allowed and first.remaining == 1
        assert first.reset_at == int(FakeClock().now) + 900
        # the expiry exists as soon as the counter does
        assert client.ttls["ratelimit:auth:9.9.9.9"] == 900
        assert client.executed == 1

        await store.hit("auth:9.9.9.9", 2, 900)
        assert not (await store.hit("auth:9.9.9.9", 2, 900)).allowed
        assert client.values["ratelimit:auth:9.9.9.9"] == 3
        assert client.executed == 3
        assert await store.sweep() == 0
        await store.close()

    _run(scenario())
    assert client.closed


def test_redis_store_rearms_a_key_without_expiry():
    client = FakeRedis()
    client.values["ratelimit:contact:1.1.1.1"] = 1  # left behind without a TTL
    store = RedisRateLimitStore(client, clock=FakeClock())

    result = _run(store.hit("contact:1.1.1.1", 3, 3600))
    assert result.remaining == 1
    assert client.ttls["ratelimit:contact:1.1.1.1"] == 3600


def test_middleware_awaits_the_redis_store(client: TestClient, monkeypatch):
    fake = FakeRedis()
    monkeypatch.setattr(settings, "RATELIMIT_ENABLED", True)
    monkeypatch.setattr(app.state, "rate_limit_store", RedisRateLimitStore(fake))

    payload = {"email": "nobody@acme.io", "password": "wrong"}
    codes = [client.post(f"{settings.API_V1_STR}/auth/login", json=payload).status_code for _ in range(6)]
    assert codes == [401] * 5 + [429]
    assert fake.executed == 6


@pytest.mark.parametrize(
    "method, path, rule",
    [
        ("POST", "/admin/login", "auth"),
        ("POST", "/api/v1/auth/login", "auth"),
        ("POST", "/api/auth/reset-password", "auth"),
        ("POST", "/api/auth/reset-password/confirm", "auth"),
        ("POST", "/api/contact", "contact"),
        ("POST", "/api/newsletter/subscribe", "form_submission"),
        ("POST", "/api/v1/content/7/preview-token", "api"),
        ("GET", "/api/contact", None),
        ("POST", "/api/personalization/industry", None),
    ],
)
def test_rule_for(method, path, rule):
    assert rule_for(method, path) == rule


def test_client_identifier_ignores_client_set_forwarded_header():
    scope = {
        "type": "http",
        "headers": [(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1"), (b"x-real-ip", b"203.0.113.8")],
        "client": ("10.0.0.1", 1234),
    }
    assert client_identifier(Request(scope)) == "10.0.0.1"


def test_rotating_forwarded_for_does_not_reset_the_window(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings, "RATELIMIT_ENABLED", True)
    monkeypatch.setattr(app.state, "rate_limit_store", InMemoryRateLimitStore())

    payload = {"email": "nobody@acme.io", "password": "wrong"}
    codes = [
        client.post(
            f"{settings.API_V1_STR}/auth/login",
            json=payload,
            headers={"X-Forwarded-For": f"198.51.100.{i}"},
        ).status_code
        for i in range(20)
    ]
    assert codes[:5] == [401] * 5
    assert set(codes[5:]) == {429}


def test_middleware_returns_429_with_retry_after(client: TestClient, monkeypatch):
    monkeypatch.setattr(settings, "RATELIMIT_ENABLED", True)
    monkeypatch.setattr(app.state, "rate_limit_store", InMemoryRateLimitStore())

    payload = {"email": "nobody@acme.io", "password": "wrong"}
    codes = [client.post(f"{settings.API_V1_STR}/auth/login", json=payload).status_code for _ in range(6)]
    assert codes == [401] * 5 + [429]

    r = client.post(f"{settings.API_V1_STR}/auth/login", json=payload)
    assert r.status_code == 429
    assert int(r.headers["retry-after"]) > 0
    assert r.headers["x-ratelimit-remaining"] == "0"

    # unlimited routes are untouched
    assert client.get(f"{settings.API_V1_STR}/health/ping").status_code == 200


def test_middleware_disabled_by_setting(client: TestClient, monkeypatch):
    monkeypatch.setattr(app.state, "rate_limit_store", InMemoryRateLimitStore())
    payload = {"email": "nobody@acme.io", "password": "wrong"}
    codes = {client.post(f"{settings.API_V1_STR}/auth/login", json=payload).status_code for _ in range(7)}
    assert codes == {401}
