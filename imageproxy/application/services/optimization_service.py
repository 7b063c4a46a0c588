import logging
from dataclasses import dataclass, field
from typing import Optional

from ..ports.cache_store import CacheStore
from ..ports.image_transformer import ImageTransformer
from ...exceptions import FetchError, InvalidRequest, TransformError, UpstreamError
from ...models import (
    CacheStatus,
    OptimizationResult,
    TransformParams,
    classify_source,
    derivative_cache_key,
    savings_percent,
)
from .cache_writes import best_effort_get, best_effort_set
from .single_flight import SingleFlight
from .source_resolver import SourceResolver

logger = logging.getLogger(__name__)


@dataclass
class OptimizationService:
    """Serves optimized derivatives: cache lookup, fetch, transform, cache fill.

    The derivative cache is consulted first and a hit short-circuits the
    whole flow. On a miss the original is fetched, transformed and written
    back. If the transform makes the payload larger, the original bytes are
    returned to the caller; ``cache_served_payload`` decides whether the
    cache keeps the transformed bytes (default) or the served ones.
    """

    resolver: SourceResolver
    transformer: ImageTransformer
    derivative_cache: CacheStore
    cache_ttl_seconds: int = 60 * 60 * 24 * 7
    default_quality: str = "75"
    cache_served_payload: bool = False
    single_flight: Optional[SingleFlight] = None
    content_type: str = "image/webp"

    async def serve(self, source: Optional[str], width: Optional[str] = None, quality: Optional[str] = None) -> OptimizationResult:
        if not source:
            raise InvalidRequest("Source image is required")
        quality = quality or self.default_quality

        cache_key = derivative_cache_key(source, width, quality)
        cached = await best_effort_get(self.derivative_cache, cache_key)
        if cached is not None:
            logger.info(f"Cache hit: {cache_key}")
            return OptimizationResult(
                content=cached,
                cache_status=CacheStatus.HIT,
                content_type=self.content_type,
                source_kind=classify_source(source).kind,
            )
        if self.derivative_cache.enabled:
            logger.info(f"Cache miss: {cache_key}")

        if self.single_flight is None:
            return await self._optimize(source, width, quality, cache_key)
        result, shared = await self.single_flight.do(
            cache_key, lambda: self._optimize(source, width, quality, cache_key)
        )
        if shared:
            logger.info(f"Joined in-flight optimization: {cache_key}")
        return result

    async def _optimize(self, source: str, width: Optional[str], quality: str, cache_key: str) -> OptimizationResult:
        image_source = classify_source(source)
        try:
            original = await self.resolver.fetch(image_source)
        except FetchError as e:
            raise UpstreamError(e.message) from e
        original_size = len(original)

        params = TransformParams.from_query(width, quality)
        try:
            processed = await self.transformer.transform(original, params)
        except TransformError:
            raise
        except Exception as e:
            logger.error(f"Transform failed for {source}: {e}")
            raise TransformError(f"Error processing image: {e}") from e

        optimized_size = len(processed)
        savings = savings_percent(original_size, optimized_size)
        logger.info(f"Image processed: {source}")
        logger.info(f"Original size: {original_size / 1024:.2f} KB")
        logger.info(f"Optimized size: {optimized_size / 1024:.2f} KB")
        if savings > 0:
            logger.info(f"Saved: {savings:.2f}%")

        inflated = optimized_size > original_size
        served = original if inflated else processed
        to_cache = served if self.cache_served_payload else processed
        if await best_effort_set(self.derivative_cache, cache_key, to_cache, self.cache_ttl_seconds):
            logger.info(f"Cached image: {cache_key}")
        if inflated:
            logger.info(f"Optimization grew {source} by {-savings:.2f}%, serving original")

        return OptimizationResult(
            content=served,
            cache_status=CacheStatus.MISS,
            content_type=self.content_type,
            original_size=original_size,
            optimized_size=optimized_size,
            source_kind=image_source.kind,
        )
