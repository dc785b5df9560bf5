"""
Shared Redis connection pool.

Holds the refresh token blacklist; the health router pings it directly.
"""

from functools import lru_cache

import redis.asyncio as redis

from quizhub.infra.config.settings import settings
from quizhub.core.logger.logger import logger


@lru_cache()
def get_redis_pool() -> redis.ConnectionPool:
    return redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS,
        socket_timeout=settings.REDIS_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.REDIS_SOCKET_TIMEOUT,
        health_check_interval=settings.REDIS_HEALTH_CHECK_INTERVAL,
    )


async def get_redis() -> redis.Redis:
    """
    Client bound to the shared pool, pinged before it is handed out.

    Raises:
        redis.RedisError: the server is unreachable
    """
    client = redis.Redis(connection_pool=get_redis_pool())
    try:
        await client.ping()
    except redis.RedisError as e:
        logger.error("Redis unavailable", extra={"error": str(e)})
        raise
    return client


async def close_redis_pool() -> None:
    """Drop pooled connections; a later get_redis() builds a fresh pool"""
    if get_redis_pool.cache_info().currsize:
        await get_redis_pool().disconnect()
        get_redis_pool.cache_clear()
