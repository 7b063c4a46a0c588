from typing import Optional, Protocol


class CacheStore(Protocol):
    """TTL key-value cache. A disabled store behaves as an always-miss cache."""

    @property
    def enabled(self) -> bool:
        ...

    async def get(self, key: str) -> Optional[bytes]:
        ...

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> bool:
        ...

    async def close(self) -> None:
        ...
