import asyncio
import base64
import logging
from typing import Optional

import redis.asyncio as redis

from ...application.ports.cache_store import CacheStore

logger = logging.getLogger(__name__)


class RedisCacheStore(CacheStore):
    """Redis-backed cache. Values are stored as base64 text with an EX ttl.

    ``connect`` is attempted once at startup with a bounded timeout; if it
    fails the store stays disabled for the lifetime of the process.
    """

    def __init__(self, url: str, connect_timeout: float = 1.0) -> None:
        self.url = url
        self.connect_timeout = connect_timeout
        self.client: Optional[redis.Redis] = None
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled and self.client is not None

    async def connect(self) -> bool:
        if not self.url:
            logger.info("Redis cache disabled (REDIS_URL not set)")
            return False
        client = None
        try:
            client = redis.Redis.from_url(self.url)
            await asyncio.wait_for(client.ping(), timeout=self.connect_timeout)
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            if client is not None:
                await self._close_client(client)
            self.client = None
            self._enabled = False
            return False
        self.client = client
        self._enabled = True
        logger.info("Redis cache enabled")
        return True

    async def get(self, key: str) -> Optional[bytes]:
        if not self.enabled:
            return None
        try:
            value = await self.client.get(key)
        except Exception as e:
            logger.error(f"Redis get error for {key}: {e}")
            return None
        if value is None:
            return None
        return base64.b64decode(value)

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> bool:
        if not self.enabled:
            return False
        try:
            await self.client.set(key, base64.b64encode(value), ex=ttl_seconds)
            return True
        except Exception as e:
            logger.error(f"Redis set error for {key}: {e}")
            return False

    async def close(self) -> None:
        client, self.client = self.client, None
        self._enabled = False
        if client is not None:
            await self._close_client(client)
            logger.info("Redis cache disconnected")

    @staticmethod
    async def _close_client(client) -> None:
        try:
            await client.aclose()
        except Exception as e:
            logger.warning(f"Error closing Redis client: {e}")
