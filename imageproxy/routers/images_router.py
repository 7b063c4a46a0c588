import logging
import time
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from ..context import ServiceContext
from ..exceptions import ImageProxyError, create_error_response
from ..models import CacheStatus, OptimizationEvent, TransformParams, classify_source

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Images"])


def get_context(request: Request) -> ServiceContext:
    return request.app.state.ctx


@router.get("/favicon.ico", include_in_schema=False)
async def favicon():
    return Response(status_code=204)


@router.get("/{src:path}")
async def optimize_image(
    src: str,
    request: Request,
    background_tasks: BackgroundTasks,
    w: Optional[str] = Query(None, description="Target width in pixels"),
    q: Optional[str] = Query(None, description="WebP quality 0-100 (default 75)"),
    ctx: ServiceContext = Depends(get_context),
):
    """
    Serve an optimized WebP rendition of ``src``.

    ``src`` is either an http(s) URL or an R2 bucket key, URL-encoded into the
    path. Example: ``GET /photos%2Fcat.jpg?w=800&q=80``
    """
    source = src
    quality = q or str(ctx.settings.DEFAULT_QUALITY)
    logger.info(f"Handling image request: {source} w={w} q={quality}")
    started = time.perf_counter()
    event = OptimizationEvent(
        event_type="cache_miss",
        original_url=source,
        source=classify_source(source).kind if source else "url",
        referrer=request.headers.get("referer"),
        user_agent=request.headers.get("user-agent"),
    )
    params = TransformParams.from_query(w, quality)
    event.width, event.quality = params.width, params.quality

    try:
        result = await ctx.optimization_service.serve(source, w, quality)
    except ImageProxyError as e:
        logger.error(f"Error processing image {source}: {e.message}")
        event.event_type, event.success, event.error = "error", False, e.message
        background_tasks.add_task(ctx.tracker.track_optimization, event)
        return JSONResponse(
            status_code=e.status_code,
            content=create_error_response(e.message, e.status_code),
            background=background_tasks,
        )

    event.processing_time_ms = int((time.perf_counter() - started) * 1000)
    event.cache_hit = result.cache_status == CacheStatus.HIT
    event.event_type = "cache_hit" if event.cache_hit else "cache_miss"
    event.original_size, event.optimized_size = result.original_size, result.optimized_size
    background_tasks.add_task(ctx.tracker.track_optimization, event)

    return Response(
        content=result.content,
        media_type=result.content_type,
        headers={"X-Cache": result.cache_status.value},
        background=background_tasks,
    )
