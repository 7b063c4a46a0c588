from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse


class ImageProxyError(Exception):
    """Base error for the retrieval/transform pipeline. Carries its HTTP status."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(ImageProxyError):
    status_code = 400


class NotFound(ImageProxyError):
    status_code = 404


class FetchError(ImageProxyError):
    """Transport or storage backend failure while reading the original."""


class UpstreamError(ImageProxyError):
    """A FetchError as seen by the request boundary."""


class TransformError(ImageProxyError):
    """Codec failure on malformed or unsupported image data."""


def create_error_response(error_message: str, status_code: int = 400) -> dict:
    """Create a standardized error response"""
    return {
        "success": False,
        "data": None,
        "error": error_message
    }


async def image_proxy_exception_handler(request: Request, exc: ImageProxyError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, exc.status_code)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Custom exception handler for HTTPException"""
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.detail, exc.status_code)
    )
