"""
Per-client request limits backed by Redis sorted sets

Each (group, client) pair owns one sorted set at
"ratelimit:{group}:{client}" whose members are request timestamps. Entries
older than the window are pruned before counting, giving a sliding window.
"""

import logging
import time
import uuid
from typing import Dict, Iterable, NamedTuple, Optional, Tuple

import redis
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from terravest.infrastructure.logging_config import trace_id_context
from terravest.infrastructure.settings import Settings, get_settings
from terravest.utils.metrics import record_rate_limit_exceeded

logger = logging.getLogger(__name__)


class RateLimitDecision(NamedTuple):
    allowed: bool
    limit: int
    remaining: int
    reset_at: int  # epoch seconds

    def headers(self) -> Dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at),
        }


class RateLimiter:
    """Sliding window of `limit` requests per `window_seconds`"""

    def __init__(self, redis_client, limit: int, window_seconds: int = 60):
        self.redis = redis_client
        self.limit = limit
        self.window_seconds = window_seconds

    @staticmethod
    def key(group: str, identifier: str) -> str:
        return f"ratelimit:{group}:{identifier}"

    def hit(self, group: str, identifier: str) -> RateLimitDecision:
        """
        Count the request against the window. Denied requests are not
        recorded, so a client that backs off regains capacity on schedule.

        Raises redis.RedisError when Redis is unreachable.
        """
        key = self.key(group, identifier)
        now = time.time()

        pipe = self.redis.pipeline()
        pipe.zremrangebyscore(key, 0, now - self.window_seconds)
        pipe.zcard(key)
        pipe.zrange(key, 0, 0, withscores=True)
        _, count, oldest = pipe.execute()

        if count >= self.limit:
            started = oldest[0][1] if oldest else now
            return RateLimitDecision(False, self.limit, 0, int(started) + self.window_seconds)

        pipe = self.redis.pipeline()
        pipe.zadd(key, {uuid.uuid4().hex: now})
        pipe.expire(key, self.window_seconds + 10)
        pipe.execute()
        return RateLimitDecision(True, self.limit, self.limit - count - 1, int(now) + self.window_seconds)


def client_identifier(request: Request, trusted_proxies: Iterable[str] = ()) -> str:
    """
    The socket peer, or the address it forwarded for when the peer is a
    trusted proxy (first X-Forwarded-For hop, then X-Real-IP).
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return peer


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Limits ADMIN_PREFIX paths (group "admin") and API_PREFIX paths (group
    "api") separately. Other paths (probes, docs, metrics) are not limited.
    If Redis is down the request goes through and a warning is logged.
    """

    def __init__(self, app, redis_client, settings: Optional[Settings] = None):
        super().__init__(app)
        settings = settings or get_settings()
        self.trusted_proxies = frozenset(settings.TRUSTED_PROXIES)
        # Admin first: its prefix sits under the API prefix
        self.groups = (
            (settings.ADMIN_PREFIX.rstrip("/") + "/", "admin", RateLimiter(redis_client, settings.RL_ADMIN_PER_MIN)),
            (settings.API_PREFIX.rstrip("/") + "/", "api", RateLimiter(redis_client, settings.RL_API_PER_MIN)),
        )

    def match(self, path: str) -> Optional[Tuple[str, RateLimiter]]:
        for prefix, group, limiter in self.groups:
            if path.startswith(prefix):
                return group, limiter
        return None

    async def dispatch(self, request: Request, call_next):
        matched = self.match(request.url.path)
        if matched is None:
            return await call_next(request)
        group, limiter = matched
        identifier = client_identifier(request, self.trusted_proxies)

        try:
            decision = limiter.hit(group, identifier)
        except redis.RedisError as e:
            logger.warning("Rate limiter unavailable, request allowed", extra={"group": group, "error": str(e)})
            return await call_next(request)

        if not decision.allowed:
            record_rate_limit_exceeded(group=group)
            logger.warning(
                "Rate limit exceeded",
                extra={"group": group, "identifier": identifier, "path": request.url.path, "method": request.method},
            )
            headers = decision.headers()
            headers["Retry-After"] = str(max(1, decision.reset_at - int(time.time())))
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error": {
                        "code": "RATE_LIMITED",
                        "message": f"Rate limit exceeded. Maximum {decision.limit} requests per minute.",
                        "details": {"group": group, "reset_at": decision.reset_at},
                        "trace_id": trace_id_context.get(),
                    }
                },
                headers=headers,
            )

        response = await call_next(request)
        response.headers.update(decision.headers())
        return response
