"""
Unit tests for the read-through cache store.
"""

import pytest

from backend.app.services.cache import InMemoryCacheStore, hashed_key


# TEST 1: Key derivation

def test_hashed_key_is_deterministic_and_order_independent():
    first = hashed_key("blogs", {"search": "", "perPage": 10, "page": 1})
    second = hashed_key("blogs", {"page": 1, "perPage": 10, "search": ""})
    assert first == second
    assert first.startswith("blogs_api_")


def test_hashed_key_changes_with_parameters():
    assert hashed_key("blogs", {"page": 1}) != hashed_key("blogs", {"page": 2})
    assert hashed_key("blogs", {"page": 1}) != hashed_key("products", {"page": 1})


# TEST 2: remember()

@pytest.mark.asyncio
async def test_remember_calls_producer_once():
    store = InMemoryCacheStore()
    calls = []

    async def producer():
        calls.append(1)
        return {"data": [1, 2, 3], "total": 3}

    first = await store.remember("blogs_latest_3", 60, producer)
    second = await store.remember("blogs_latest_3", 60, producer)

    assert first == second == {"data": [1, 2, 3], "total": 3}
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_remember_caches_empty_results():
    store = InMemoryCacheStore()
    calls = []

    async def producer():
        calls.append(1)
        return []

    assert await store.remember("products_featured_3", 60, producer) == []
    assert await store.remember("products_featured_3", 60, producer) == []
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_producer_errors_are_not_cached():
    store = InMemoryCacheStore()

    async def failing():
        raise LookupError("missing")

    with pytest.raises(LookupError):
        await store.remember("blog_show_api_99", 60, failing)
    assert "blog_show_api_99" not in store


@pytest.mark.asyncio
async def test_expired_entries_are_recomputed(mocker):
    store = InMemoryCacheStore()
    clock = mocker.patch("backend.app.services.cache.time")
    clock.monotonic.return_value = 1000.0

    async def producer():
        return clock.monotonic.return_value

    assert await store.remember("k", 10, producer) == 1000.0
    clock.monotonic.return_value = 1005.0
    assert await store.remember("k", 10, producer) == 1000.0
    clock.monotonic.return_value = 1011.0
    assert await store.remember("k", 10, producer) == 1011.0


# TEST 3: Eviction

@pytest.mark.asyncio
async def test_forget_and_flush():
    store = InMemoryCacheStore()
    await store.put("a", 1, 60)
    await store.put("b", 2, 60)

    assert await store.forget("a") is True
    assert await store.forget("a") is False
    assert await store.forget_many(["b", "missing"]) == 1

    await store.put("c", 3, 60)
    await store.flush()
    assert store.keys() == set()


@pytest.mark.asyncio
async def test_invalidate_tag_only_drops_tagged_keys():
    store = InMemoryCacheStore()
    await store.put("product_show_api_1", {"id": 1}, 60, tags=["products", "principals"])
    await store.put("blog_show_api_1", {"id": 1}, 60, tags=["blogs"])

    assert await store.invalidate_tag("principals") == 1
    assert "product_show_api_1" not in store
    assert "blog_show_api_1" in store


@pytest.mark.asyncio
async def test_values_round_trip_through_json():
    store = InMemoryCacheStore()
    original = {"items": [1, 2], "meta": {"count": 2}}
    await store.put("k", original, 60)
    original["items"].append(3)

    hit, value = await store.get("k")
    assert hit is True
    assert value == {"items": [1, 2], "meta": {"count": 2}}
