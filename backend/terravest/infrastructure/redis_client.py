"""
Redis connection shared by the rate limiter and the readiness probe
"""

import logging
from functools import lru_cache

import redis

from terravest.infrastructure.settings import get_settings

logger = logging.getLogger(__name__)


@lru_cache()
def get_redis() -> redis.Redis:
    """
    Process-wide client. The pool only connects on the first command, so
    building it at startup works even while Redis is still coming up.
    """
    settings = get_settings()
    pool = redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        socket_connect_timeout=settings.REDIS_TIMEOUT_SECONDS,
        socket_timeout=settings.REDIS_TIMEOUT_SECONDS,
    )
    return redis.Redis(connection_pool=pool)


def ping_redis() -> bool:
    try:
        return bool(get_redis().ping())
    except redis.RedisError as e:
        logger.warning("Redis ping failed", extra={"error": str(e)})
        return False


def close_redis() -> None:
    """Drop pooled connections (application shutdown)"""
    if get_redis.cache_info().currsize:
        get_redis().connection_pool.disconnect()
        get_redis.cache_clear()
