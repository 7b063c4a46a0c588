from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(request: Request, background_tasks: BackgroundTasks):
    ctx = request.app.state.ctx
    status = ctx.status()
    background_tasks.add_task(ctx.tracker.track_health_check, "healthy", status)
    return {
        "status": "healthy",
        "service": ctx.settings.APP_NAME,
        "version": ctx.settings.APP_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        **status,
    }
