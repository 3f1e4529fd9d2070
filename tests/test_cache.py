"""
Tests for cache strategies and the cache factory.
"""
import asyncio

from shortlink_app.cache.factory import CacheBackend, CacheFactory
from shortlink_app.cache.strategies import InMemoryCache, NullCache, cache_key


class TestInMemoryCache:

    def test_set_get_delete(self):
        cache = InMemoryCache()

        assert asyncio.run(cache.set("k", "v")) is True
        assert asyncio.run(cache.get("k")) == "v"
        assert asyncio.run(cache.delete("k")) is True
        assert asyncio.run(cache.get("k")) is None
        assert asyncio.run(cache.delete("k")) is False


class TestNullCache:

    def test_always_misses(self):
        cache = NullCache()

        asyncio.run(cache.set("k", "v"))
        assert asyncio.run(cache.get("k")) is None


class TestCacheFactory:

    def test_memory_backend(self, settings):
        cache = asyncio.run(CacheFactory.create(CacheBackend.MEMORY, settings))
        assert isinstance(cache, InMemoryCache)

    def test_null_backend(self, settings):
        cache = asyncio.run(CacheFactory.create(CacheBackend.NULL, settings))
        assert isinstance(cache, NullCache)

    def test_unreachable_redis_falls_back(self, settings):
        settings.redis_url = "redis://127.0.0.1:1/0"

        cache = asyncio.run(CacheFactory.create(CacheBackend.REDIS, settings))

        assert isinstance(cache, InMemoryCache)


def test_cache_key_is_namespaced():
    assert cache_key("abc123") == "url:abc123"
