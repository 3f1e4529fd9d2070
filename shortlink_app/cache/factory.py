"""
Factory for creating cache instances.
"""

import logging
from enum import Enum

import redis.asyncio as redis

from shortlink_app.config import Settings
from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Simple factory for creating cache instances.

    Called once from the application lifespan; the app owns the instance.
    """

    @classmethod
    async def create(cls, backend: CacheBackend, settings: Settings) -> CacheStrategy:
        """
        Create a cache instance.

        Args:
            backend: Type of cache backend (from enum)
            settings: Application settings (redis_url)

        Returns:
            Cache instance. Falls back to in-memory if Redis is unreachable.
        """
        if backend == CacheBackend.REDIS:
            redis_client = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2,
            )
            try:
                # Test connection immediately
                await redis_client.ping()
            except Exception as e:
                logger.warning("Redis connection failed: %s. Falling back to in-memory cache", e)
                await redis_client.aclose()
                return InMemoryCache()

            logger.info("Redis cache initialized")
            return RedisCache(redis_client)

        if backend == CacheBackend.MEMORY:
            logger.info("In-memory cache initialized")
            return InMemoryCache()

        if backend == CacheBackend.NULL:
            logger.info("Null cache initialized")
            return NullCache()

        raise ValueError(f"Unknown cache backend: {backend}")
