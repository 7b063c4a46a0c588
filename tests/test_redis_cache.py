import asyncio
import base64

import pytest

from imageproxy.infrastructure.cache import redis_cache as mod
from imageproxy.infrastructure.cache.redis_cache import RedisCacheStore


class FakeAsyncRedis:
    instances = []

    def __init__(self, ping_error=None, ping_delay=0.0):
        self.store = {}
        self.expiries = {}
        self.ping_error = ping_error
        self.ping_delay = ping_delay
        self.closed = False
        self.fail_ops = False

    @classmethod
    def factory(cls, **kwargs):
        def from_url(url):
            inst = cls(**kwargs)
            cls.instances.append(inst)
            return inst
        return from_url

    async def ping(self):
        if self.ping_delay:
            await asyncio.sleep(self.ping_delay)
        if self.ping_error:
            raise self.ping_error
        return True

    async def get(self, key):
        if self.fail_ops:
            raise ConnectionError("lost")
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self.fail_ops:
            raise ConnectionError("lost")
        self.store[key] = value
        self.expiries[key] = ex
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture(autouse=True)
def reset_instances():
    FakeAsyncRedis.instances = []


@pytest.mark.asyncio
async def test_no_url_leaves_cache_disabled(monkeypatch):
    monkeypatch.setattr(mod.redis.Redis, "from_url", FakeAsyncRedis.factory())
    cache = RedisCacheStore("")
    assert await cache.connect() is False
    assert not cache.enabled
    assert FakeAsyncRedis.instances == []
    assert await cache.get("k") is None
    assert await cache.set("k", b"v", 10) is False


@pytest.mark.asyncio
async def test_connect_then_values_are_base64_with_ttl(monkeypatch):
    monkeypatch.setattr(mod.redis.Redis, "from_url", FakeAsyncRedis.factory())
    cache = RedisCacheStore("redis://fake")
    assert await cache.connect() is True
    assert await cache.set("img:a:w=null:q=75", b"\x89PNG", 604800) is True

    client = FakeAsyncRedis.instances[0]
    assert client.store["img:a:w=null:q=75"] == base64.b64encode(b"\x89PNG")
    assert client.expiries["img:a:w=null:q=75"] == 604800
    assert await cache.get("img:a:w=null:q=75") == b"\x89PNG"


@pytest.mark.asyncio
async def test_connect_timeout_disables_caching(monkeypatch):
    monkeypatch.setattr(mod.redis.Redis, "from_url", FakeAsyncRedis.factory(ping_delay=0.5))
    cache = RedisCacheStore("redis://slow", connect_timeout=0.01)
    assert await cache.connect() is False
    assert not cache.enabled
    assert FakeAsyncRedis.instances[0].closed


@pytest.mark.asyncio
async def test_connect_error_disables_caching(monkeypatch):
    monkeypatch.setattr(mod.redis.Redis, "from_url", FakeAsyncRedis.factory(ping_error=ConnectionError("refused")))
    cache = RedisCacheStore("redis://down")
    assert await cache.connect() is False
    assert await cache.get("k") is None


@pytest.mark.asyncio
async def test_backend_errors_degrade_to_miss(monkeypatch):
    monkeypatch.setattr(mod.redis.Redis, "from_url", FakeAsyncRedis.factory())
    cache = RedisCacheStore("redis://fake")
    await cache.connect()
    FakeAsyncRedis.instances[0].fail_ops = True
    assert await cache.get("k") is None
    assert await cache.set("k", b"v", 10) is False


@pytest.mark.asyncio
async def test_close_disables(monkeypatch):
    monkeypatch.setattr(mod.redis.Redis, "from_url", FakeAsyncRedis.factory())
    cache = RedisCacheStore("redis://fake")
    await cache.connect()
    await cache.close()
    assert not cache.enabled
    assert FakeAsyncRedis.instances[0].closed


@pytest.mark.asyncio
async def test_malformed_url_disables_caching():
    cache = RedisCacheStore("not-a-redis-url")
    assert await cache.connect() is False
    assert not cache.enabled
    assert cache.client is None
