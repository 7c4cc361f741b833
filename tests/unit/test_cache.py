"""
Tests for cache keys and the in-memory backend
"""

import pytest

from app.core.cache import CacheKey, InMemoryCache, cache_key


def test_cache_key_joins_parts():
    assert cache_key("categories", "tree") == "categories:tree"
    assert cache_key("category", 42) == "category:42"


@pytest.mark.asyncio
async def test_cache_key_round_trip_through_backend():
    backend = InMemoryCache()
    key = CacheKey("categories", "tree", backend=backend)

    assert key.build() == "categories:tree"
    assert await key.get() is None

    await key.set([{"id": 1, "name": "Vehicles"}], ttl=60)
    assert await backend.get("categories:tree") == [{"id": 1, "name": "Vehicles"}]

    assert await key.delete() is True
    assert await key.get() is None
