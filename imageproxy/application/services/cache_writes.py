import logging
from typing import Optional

from ..ports.cache_store import CacheStore

logger = logging.getLogger(__name__)


async def best_effort_get(cache: CacheStore, key: str) -> Optional[bytes]:
    """Cache read that degrades to a miss instead of raising."""
    if not cache.enabled:
        return None
    try:
        return await cache.get(key)
    except Exception as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None


async def best_effort_set(cache: CacheStore, key: str, value: bytes, ttl_seconds: int) -> bool:
    """Cache write whose failure is logged here and never reaches the caller."""
    if not cache.enabled:
        return False
    try:
        return await cache.set(key, value, ttl_seconds)
    except Exception as e:
        logger.warning(f"Cache write failed for {key}: {e}")
        return False
