"""
Tests for the Redis sliding-window rate limiter
"""

from unittest.mock import MagicMock

import redis
from fastapi import FastAPI
from fastapi.testclient import TestClient

from terravest.infrastructure.settings import Settings
from terravest.utils.rate_limiter import RateLimiter, RateLimitMiddleware


def _redis_with_count(count: int, oldest_score: float = 1_700_000_000.0) -> MagicMock:
    """Fake client whose pipeline reports `count` requests in the window"""
    client = MagicMock()
    pipe = client.pipeline.return_value
    oldest = [("member", oldest_score)] if count else []
    pipe.execute.side_effect = [[0, count, oldest], [1, True]]
    return client


def _app(redis_client, settings=None) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, redis_client=redis_client, settings=settings)

    @app.get("/api/wallet")
    async def wallet():
        return {"ok": True}

    @app.get("/api/admin/users")
    async def admin_users():
        return []

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def test_request_under_limit_is_recorded():
    client = _redis_with_count(3)
    limiter = RateLimiter(client, limit=5, window_seconds=60)

    decision = limiter.hit("api", "10.0.0.1")

    assert decision.allowed is True
    assert decision.remaining == 1
    assert decision.limit == 5
    pipe = client.pipeline.return_value
    pipe.zadd.assert_called_once()
    assert pipe.zadd.call_args[0][0] == "ratelimit:api:10.0.0.1"
    pipe.expire.assert_called_once_with("ratelimit:api:10.0.0.1", 70)


def test_request_at_limit_is_denied():
    client = _redis_with_count(5, oldest_score=1_700_000_000.0)
    limiter = RateLimiter(client, limit=5, window_seconds=60)

    decision = limiter.hit("admin", "10.0.0.1")

    assert decision.allowed is False
    assert decision.remaining == 0
    assert decision.reset_at == 1_700_000_060
    client.pipeline.return_value.zadd.assert_not_called()


def test_middleware_returns_429_envelope():
    response = TestClient(_app(_redis_with_count(10_000))).get("/api/wallet")
    assert response.status_code == 429
    body = response.json()["error"]
    assert body["code"] == "RATE_LIMITED"
    assert body["details"]["group"] == "api"
    assert response.headers["X-RateLimit-Remaining"] == "0"
    assert int(response.headers["Retry-After"]) >= 1


def test_admin_paths_use_admin_group():
    client = _redis_with_count(10_000)
    response = TestClient(_app(client)).get("/api/admin/users")
    assert response.status_code == 429
    assert response.json()["error"]["details"]["group"] == "admin"
    key = client.pipeline.return_value.zcard.call_args[0][0]
    assert key.startswith("ratelimit:admin:")


def test_middleware_sets_headers_when_allowed():
    response = TestClient(_app(_redis_with_count(0))).get("/api/wallet")
    assert response.status_code == 200
    assert "X-RateLimit-Limit" in response.headers
    assert "X-RateLimit-Reset" in response.headers


def test_middleware_ignores_paths_outside_api():
    client = _redis_with_count(10_000)
    response = TestClient(_app(client)).get("/health")
    assert response.status_code == 200
    client.pipeline.assert_not_called()


def test_middleware_fails_open_when_redis_is_down():
    client = MagicMock()
    client.pipeline.return_value.execute.side_effect = redis.ConnectionError("connection refused")
    response = TestClient(_app(client)).get("/api/wallet")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_forwarded_for_ignored_from_untrusted_peer():
    client = _redis_with_count(0)
    TestClient(_app(client)).get("/api/wallet", headers={"X-Forwarded-For": "203.0.113.7"})
    assert client.pipeline.return_value.zadd.call_args[0][0] == "ratelimit:api:testclient"


def test_forwarded_for_honoured_from_trusted_proxy():
    client = _redis_with_count(0)
    settings = Settings(TRUSTED_PROXIES="testclient")
    TestClient(_app(client, settings)).get("/api/wallet", headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert client.pipeline.return_value.zadd.call_args[0][0] == "ratelimit:api:203.0.113.7"
