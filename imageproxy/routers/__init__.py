# Routers package
from . import health_router
from . import images_router

__all__ = [
    "health_router",
    "images_router",
]
