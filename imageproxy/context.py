import logging
from dataclasses import dataclass, field
from typing import Optional

from .application.ports.analytics import AnalyticsTracker
from .application.ports.cache_store import CacheStore
from .application.ports.http_fetcher import HttpFetcher
from .application.ports.image_transformer import ImageTransformer
from .application.ports.object_store import ObjectStore
from .application.services import OptimizationService, SingleFlight, SourceResolver
from .config import Settings
from .infrastructure.analytics.umami_tracker import NullTracker, UmamiTracker
from .infrastructure.cache.memory_cache import InMemoryCacheStore
from .infrastructure.cache.redis_cache import RedisCacheStore
from .infrastructure.http.aiohttp_fetcher import AiohttpFetcher
from .infrastructure.imaging.pillow_transformer import PillowTransformer
from .infrastructure.storage.r2_storage import S3ObjectStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    """Process-wide collaborators, built once at startup and closed at shutdown."""

    settings: Settings
    cache: CacheStore
    object_store: ObjectStore
    http_fetcher: HttpFetcher
    transformer: ImageTransformer
    tracker: AnalyticsTracker
    _service: Optional[OptimizationService] = field(default=None, init=False, repr=False)

    @property
    def optimization_service(self) -> OptimizationService:
        if self._service is None:
            self._service = build_optimization_service(self)
        return self._service

    def status(self) -> dict:
        return {
            "cache": {
                "enabled": self.cache.enabled,
                "backend": self.settings.CACHE_BACKEND,
            },
            "storage": {
                "enabled": self.object_store.enabled,
                "bucket": self.settings.R2_BUCKET_NAME or None,
            },
            "analytics": {"enabled": self.tracker.enabled},
        }

    async def aclose(self) -> None:
        for name, resource in (
            ("cache", self.cache),
            ("http_fetcher", self.http_fetcher),
            ("tracker", self.tracker),
        ):
            close = getattr(resource, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.warning(f"Error closing {name}: {e}")


def build_optimization_service(ctx: ServiceContext) -> OptimizationService:
    s = ctx.settings
    resolver = SourceResolver(
        http_fetcher=ctx.http_fetcher,
        object_store=ctx.object_store,
        original_cache=ctx.cache,
        cache_ttl_seconds=s.CACHE_TTL_SECONDS,
    )
    return OptimizationService(
        resolver=resolver,
        transformer=ctx.transformer,
        derivative_cache=ctx.cache,
        cache_ttl_seconds=s.CACHE_TTL_SECONDS,
        default_quality=str(s.DEFAULT_QUALITY),
        cache_served_payload=s.CACHE_SERVED_PAYLOAD,
        single_flight=SingleFlight() if s.SINGLE_FLIGHT_ENABLED else None,
        content_type=s.OUTPUT_CONTENT_TYPE,
    )


async def create_cache(settings: Settings) -> CacheStore:
    if settings.CACHE_BACKEND.lower() == "memory":
        logger.info("Using in-memory image cache")
        return InMemoryCacheStore()
    cache = RedisCacheStore(settings.REDIS_URL, connect_timeout=settings.CACHE_CONNECT_TIMEOUT)
    await cache.connect()
    return cache


async def create_tracker(settings: Settings) -> AnalyticsTracker:
    if not settings.umami_configured:
        logger.info("Umami analytics disabled (UMAMI_HOSTNAME/UMAMI_WEBSITE_ID not set)")
        return NullTracker()
    tracker = UmamiTracker.from_settings(settings)
    await tracker.start()
    return tracker


async def create_service_context(settings: Settings) -> ServiceContext:
    cache = await create_cache(settings)
    object_store = S3ObjectStore.from_settings(settings)
    await object_store.verify()
    return ServiceContext(
        settings=settings,
        cache=cache,
        object_store=object_store,
        http_fetcher=AiohttpFetcher(timeout=settings.FETCH_TIMEOUT, user_agent=settings.FETCH_USER_AGENT),
        transformer=PillowTransformer(),
        tracker=await create_tracker(settings),
    )
