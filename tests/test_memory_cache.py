import pytest

from imageproxy.infrastructure.cache.memory_cache import InMemoryCacheStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_set_then_get_round_trips_bytes():
    cache = InMemoryCacheStore()
    assert await cache.set("k", b"\x00\xffdata", 60) is True
    assert await cache.get("k") == b"\x00\xffdata"
    assert await cache.get("missing") is None


@pytest.mark.asyncio
async def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = InMemoryCacheStore(clock=clock)
    await cache.set("k", b"v", 10)
    clock.now += 9
    assert await cache.get("k") == b"v"
    clock.now += 1
    assert await cache.get("k") is None
    assert "k" not in cache


@pytest.mark.asyncio
async def test_disabled_store_is_always_miss():
    cache = InMemoryCacheStore(enabled=False)
    assert await cache.set("k", b"v", 10) is False
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_close_disables_and_clears():
    cache = InMemoryCacheStore()
    await cache.set("k", b"v", 10)
    await cache.close()
    assert not cache.enabled
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_set_sweeps_expired_entries():
    clock = FakeClock()
    cache = InMemoryCacheStore(clock=clock)
    await cache.set("a", b"1", 10)
    await cache.set("b", b"2", 100)
    clock.now += 50
    await cache.set("c", b"3", 10)
    assert "a" not in cache
    assert "b" in cache
    assert len(cache) == 2
