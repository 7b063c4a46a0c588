import time
from typing import Dict, Optional, Tuple

from ...application.ports.cache_store import CacheStore


class InMemoryCacheStore(CacheStore):
    def __init__(self, enabled: bool = True, clock=time.monotonic) -> None:
        self._store: Dict[str, Tuple[bytes, float]] = {}
        self._clock = clock
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def peek(self, key: str) -> Optional[bytes]:
        rec = self._store.get(key)
        return rec[0] if rec else None

    async def get(self, key: str) -> Optional[bytes]:
        if not self._enabled:
            return None
        rec = self._store.get(key)
        if not rec:
            return None
        value, expires_at = rec
        # prune
        if self._clock() >= expires_at:
            del self._store[key]
            return None
        return value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> bool:
        if not self._enabled:
            return False
        now = self._clock()
        self._sweep(now)
        self._store[key] = (bytes(value), now + ttl_seconds)
        return True

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._store.items() if now >= expires_at]
        for k in expired:
            del self._store[k]

    async def close(self) -> None:
        self._enabled = False
        self._store.clear()
