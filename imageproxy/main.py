import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# Load environment variables as early as possible
load_dotenv()

from .config import Settings, settings as default_settings
from .context import ServiceContext, create_service_context
from .exceptions import ImageProxyError, http_exception_handler, image_proxy_exception_handler
from .middleware import ErrorHandlingMiddleware, LoggingMiddleware
from .routers import health_router, images_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT
    )


def create_app(settings: Optional[Settings] = None, context: Optional[ServiceContext] = None) -> FastAPI:
    """Build the app. A prebuilt ``context`` skips collaborator startup (used by tests)."""
    settings = settings or (context.settings if context else default_settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.APP_NAME} on port {settings.PORT}...")
        app.state.ctx = context or await create_service_context(settings)
        yield
        logger.info(f"Shutting down {settings.APP_NAME}...")
        await app.state.ctx.aclose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )
    if context is not None:
        app.state.ctx = context

    app.add_exception_handler(ImageProxyError, image_proxy_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_methods=["GET"],
        allow_headers=["Content-Type"],
        max_age=settings.CORS_MAX_AGE,
    )

    # Health first: the image route matches every path
    app.include_router(health_router.router)
    app.include_router(images_router.router)
    return app


configure_logging(default_settings)
app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("imageproxy.main:app", host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    run()
