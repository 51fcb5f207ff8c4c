import pytest

from app.services.query_cache import InMemoryQueryCache, make_cache_key


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_key_is_order_independent():
    a = make_cache_key("properties", {"beds": 2, "location": "cape town", "limit": 50})
    b = make_cache_key("properties", {"limit": 50, "location": "cape town", "beds": 2})
    assert a == b
    assert a.startswith("properties:")


def test_key_distinguishes_values_and_endpoints():
    assert make_cache_key("properties", {"beds": 2}) != make_cache_key("properties", {"beds": 3})
    assert make_cache_key("properties", {"id": 1}) != make_cache_key("property", {"id": 1})
    assert make_cache_key("p", {"x": None}) != make_cache_key("p", {"x": "null "})


@pytest.mark.asyncio
async def test_get_returns_value_until_ttl_expires():
    clock = FakeClock()
    cache = InMemoryQueryCache(clock=clock)
    await cache.set("k", [{"id": 1}], ttl=60)

    clock.now += 59
    assert await cache.get("k") == [{"id": 1}]

    clock.now += 1
    assert await cache.get("k") is None
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_missing_key_is_none():
    assert await InMemoryQueryCache().get("nope") is None


@pytest.mark.asyncio
async def test_empty_list_is_a_cache_hit():
    cache = InMemoryQueryCache()
    await cache.set("k", [], ttl=60)
    assert await cache.get("k") == []


@pytest.mark.asyncio
async def test_invalidate_all_clears_every_entry():
    cache = InMemoryQueryCache()
    await cache.set("a", 1, ttl=60)
    await cache.set("b", 2, ttl=180)
    await cache.invalidate_all()
    assert await cache.get("a") is None
    assert await cache.get("b") is None


@pytest.mark.asyncio
async def test_full_cache_sweeps_expired_then_oldest():
    clock = FakeClock()
    cache = InMemoryQueryCache(max_entries=3, clock=clock)
    await cache.set("old", 1, ttl=10)
    await cache.set("a", 2, ttl=100)
    await cache.set("b", 3, ttl=100)

    clock.now += 20
    await cache.set("c", 4, ttl=100)
    assert await cache.get("old") is None
    assert await cache.get("a") == 2

    await cache.set("d", 5, ttl=100)
    assert await cache.get("a") is None
    assert await cache.get("d") == 5
    assert len(cache) == 3
