from typing import Dict, List, Optional, Tuple, Union

import pytest

from imageproxy.application.ports.object_store import ObjectNotFoundError
from imageproxy.application.services import OptimizationService, SourceResolver
from imageproxy.infrastructure.cache.memory_cache import InMemoryCacheStore
from imageproxy.models import TransformParams


class FakeFetcher:
    def __init__(self, responses: Optional[Dict[str, Union[Tuple[int, bytes], Exception]]] = None):
        self.responses = responses or {}
        self.calls: List[str] = []

    async def get(self, url: str) -> Tuple[int, bytes]:
        self.calls.append(url)
        resp = self.responses.get(url, (404, b"not found"))
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeObjectStore:
    def __init__(self, objects: Optional[Dict[str, bytes]] = None, error: Optional[Exception] = None):
        self.objects = objects or {}
        self.error = error
        self.calls: List[str] = []

    @property
    def enabled(self) -> bool:
        return True

    async def get_object(self, key: str) -> bytes:
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        if key not in self.objects:
            raise ObjectNotFoundError(key)
        return self.objects[key]


class FakeTransformer:
    """Halves the payload unless told otherwise."""

    def __init__(self, output: Optional[bytes] = None, error: Optional[Exception] = None):
        self.output = output
        self.error = error
        self.calls: List[Tuple[bytes, TransformParams]] = []

    async def transform(self, data: bytes, params: TransformParams) -> bytes:
        self.calls.append((data, params))
        if self.error is not None:
            raise self.error
        if self.output is not None:
            return self.output
        return data[: len(data) // 2]


class RecordingCache(InMemoryCacheStore):
    def __init__(self, enabled: bool = True):
        super().__init__(enabled=enabled)
        self.sets: List[str] = []

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> bool:
        self.sets.append(key)
        return await super().set(key, value, ttl_seconds)


class BrokenCache:
    """Cache whose backend blows up on every call."""

    enabled = True

    async def get(self, key):
        raise ConnectionError("redis down")

    async def set(self, key, value, ttl_seconds):
        raise ConnectionError("redis down")

    async def close(self):
        pass


@pytest.fixture
def fetcher():
    return FakeFetcher({"https://x/test.jpg": (200, b"j" * 200)})


@pytest.fixture
def store():
    return FakeObjectStore({"photos/cat.jpg": b"c" * 120})


@pytest.fixture
def transformer():
    return FakeTransformer()


@pytest.fixture
def cache():
    return RecordingCache()


@pytest.fixture
def make_service(fetcher, store, transformer, cache):
    def _make(cache=cache, **kwargs):
        resolver = SourceResolver(http_fetcher=fetcher, object_store=store, original_cache=cache)
        return OptimizationService(
            resolver=resolver,
            transformer=kwargs.pop("transformer", transformer),
            derivative_cache=cache,
            **kwargs,
        )
    return _make
