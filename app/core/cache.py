"""
Key/value caching with Redis and in-memory fallback
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from urllib.parse import urlparse

import orjson
from aiocache import SimpleMemoryCache
from aiocache.serializers import BaseSerializer
from tenacity import retry, stop_after_attempt, wait_exponential

from app.core.config import settings
from app.core.logging import log


class OrjsonSerializer(BaseSerializer):
    """Fast JSON serializer using orjson"""

    def dumps(self, value: Any) -> bytes:
        return orjson.dumps(value)

    def loads(self, value: Optional[bytes]) -> Any:
        if value is None:
            return None
        return orjson.loads(value)


class CacheBackend(ABC):
    """Abstract cache backend"""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass


class RedisCache(CacheBackend):
    """Redis cache backend; failures degrade to cache misses"""

    def __init__(self, url: Optional[str] = None):
        url = url or settings.redis_url
        if not url:
            raise ValueError("redis_url not configured")

        from aiocache import RedisCache as AioRedisCache

        parsed = urlparse(url)
        self.cache = AioRedisCache(
            serializer=OrjsonSerializer(),
            endpoint=parsed.hostname or "localhost",
            port=parsed.port or 6379,
            db=int(parsed.path.lstrip("/") or 0),
            password=parsed.password,
            timeout=1,
        )

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=0.1, max=1), reraise=True)
    async def _get(self, key: str) -> Optional[Any]:
        return await self.cache.get(key)

    async def get(self, key: str) -> Optional[Any]:
        try:
            return await self._get(key)
        except Exception as e:
            log.warning("Redis get failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        try:
            return await self.cache.set(key, value, ttl=ttl)
        except Exception as e:
            log.warning("Redis set failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(await self.cache.delete(key))
        except Exception as e:
            log.warning("Redis delete failed", key=key, error=str(e))
            return False


class InMemoryCache(CacheBackend):
    """In-process cache using aiocache's memory backend"""

    def __init__(self):
        self.cache = SimpleMemoryCache(serializer=OrjsonSerializer())

    async def get(self, key: str) -> Optional[Any]:
        return await self.cache.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        return await self.cache.set(key, value, ttl=ttl)

    async def delete(self, key: str) -> bool:
        return bool(await self.cache.delete(key))


# Global cache instance
_cache: Optional[CacheBackend] = None


def get_cache() -> CacheBackend:
    """Get cache backend instance"""
    global _cache

    if _cache is None:
        if settings.redis_url:
            try:
                _cache = RedisCache()
                log.info("Using Redis cache backend")
            except Exception as e:
                log.warning("Failed to initialize Redis cache, falling back to in-memory", error=str(e))
                _cache = InMemoryCache()
        else:
            _cache = InMemoryCache()
            log.info("Using in-memory cache backend")

    return _cache


def cache_key(*args) -> str:
    """
    Generate cache key from arguments

    Example:
        cache_key("categories", "tree") -> "categories:tree"
    """
    return ":".join(str(arg) for arg in args)


class CacheKey:
    """Cache key bound to a backend"""

    def __init__(self, *parts, backend: Optional[CacheBackend] = None):
        self.parts = list(parts)
        self.backend = backend

    def build(self) -> str:
        return cache_key(*self.parts)

    @property
    def _cache(self) -> CacheBackend:
        return self.backend or get_cache()

    async def get(self) -> Optional[Any]:
        return await self._cache.get(self.build())

    async def set(self, value: Any, ttl: Optional[int] = None) -> bool:
        return await self._cache.set(self.build(), value, ttl=ttl)

    async def delete(self) -> bool:
        return await self._cache.delete(self.build())
