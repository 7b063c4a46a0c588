import logging
from dataclasses import dataclass
from typing import Union

from ..ports.cache_store import CacheStore
from ..ports.http_fetcher import HttpFetcher
from ..ports.object_store import ObjectNotFoundError, ObjectStore
from ...exceptions import FetchError, NotFound
from ...models import ImageSource, RemoteURL, StoreKey, classify_source, original_cache_key
from .cache_writes import best_effort_get, best_effort_set

logger = logging.getLogger(__name__)


@dataclass
class SourceResolver:
    http_fetcher: HttpFetcher
    object_store: ObjectStore
    original_cache: CacheStore
    cache_ttl_seconds: int = 60 * 60 * 24 * 7

    async def fetch(self, source: Union[ImageSource, str]) -> bytes:
        if isinstance(source, str):
            source = classify_source(source)
        if isinstance(source, RemoteURL):
            return await self._fetch_url(source.value)
        if isinstance(source, StoreKey):
            return await self._fetch_key(source.value)
        raise TypeError(f"Unsupported image source: {source!r}")

    async def _fetch_url(self, url: str) -> bytes:
        logger.info(f"Looking for image in URL: {url}")
        try:
            status, body = await self.http_fetcher.get(url)
        except Exception as e:
            logger.error(f"Error fetching URL {url}: {e}")
            raise FetchError(f"Failed to fetch image from URL: {url}") from e
        if not 200 <= status < 300:
            logger.error(f"Error fetching URL {url}: status {status}")
            raise FetchError(f"Failed to fetch image from URL: {url}")
        return body

    async def _fetch_key(self, key: str) -> bytes:
        cache_key = original_cache_key(key)
        cached = await best_effort_get(self.original_cache, cache_key)
        if cached is not None:
            logger.info(f"Original cache hit: {cache_key}")
            return cached

        logger.info(f"Looking for image in R2 bucket: {key}")
        try:
            data = await self.object_store.get_object(key)
        except ObjectNotFoundError as e:
            raise NotFound(f"Image not found in R2 bucket: {key}") from e
        except Exception as e:
            logger.error(f"Error reading from R2 bucket ({key}): {e}")
            raise FetchError(f"Failed to read image from R2: {key}") from e

        logger.info(f"Image retrieved from R2: {key} ({len(data)} bytes)")
        await best_effort_set(self.original_cache, cache_key, data, self.cache_ttl_seconds)
        return data
