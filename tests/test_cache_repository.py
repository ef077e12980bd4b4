from datetime import timedelta

import pytest

from reportsync.core.errors import CacheError
from reportsync.repositories.cache_repository import CacheRepository
from reportsync.utils.mongo import utcnow


async def test_get_returns_none_when_never_written(cache):
    assert await cache.get("missing") is None


async def test_put_then_get_returns_value(cache):
    await cache.put("numbers", [1, 2, {"a": "b"}])
    assert await cache.get("numbers") == [1, 2, {"a": "b"}]


async def test_put_overwrites_previous_value(cache):
    await cache.put("k", ["old"])
    await cache.put("k", ["new"])
    assert await cache.get("k") == ["new"]


async def test_is_stale_without_refresh_timestamp(cache):
    await cache.put("k", [1])
    assert await cache.is_stale("k", timedelta(hours=1))


async def test_is_stale_respects_ttl(cache):
    await cache.mark_refreshed("k", utcnow() - timedelta(minutes=10))
    assert not await cache.is_stale("k", timedelta(hours=1))
    assert await cache.is_stale("k", timedelta(minutes=5))


async def test_clear_removes_value_and_timestamp(cache):
    await cache.put("k", [1])
    await cache.mark_refreshed("k")
    await cache.clear("k")
    assert await cache.get("k") is None
    assert await cache.refreshed_at("k") is None


async def test_unserializable_value_raises_cache_error(cache):
    with pytest.raises(CacheError):
        await cache.put("k", {"x": object()})


async def test_storage_failure_raises_cache_error(collection):
    cache = CacheRepository(collection)
    collection.fail_writes = 1
    with pytest.raises(CacheError):
        await cache.put("k", [1])

    collection.fail_reads = True
    with pytest.raises(CacheError):
        await cache.get("k")


async def test_malformed_stored_value_raises_cache_error(collection):
    collection.docs["k"] = {"_id": "k", "value": "{not json"}
    with pytest.raises(CacheError):
        await CacheRepository(collection).get("k")
