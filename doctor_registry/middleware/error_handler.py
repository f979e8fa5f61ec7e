"""Error handling middleware."""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from doctor_registry.core.exceptions import AppException

logger = structlog.get_logger(__name__)


async def app_exception_handler(request: Request, exc: AppException) -> PlainTextResponse:
    """
    Handle custom application exceptions.

    The registration form posts from a plain HTML page, so application errors
    are rendered as plain text.

    Args:
        request: Request object
        exc: Application exception

    Returns:
        Plain text error response
    """
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Handle HTTP exceptions.

    Args:
        request: Request object
        exc: HTTP exception

    Returns:
        JSON error response
    """
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTPException",
            "message": exc.detail,
            "path": str(request.url),
        },
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Args:
        request: Request object
        exc: Exception

    Returns:
        JSON error response
    """
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))

    return JSONResponse(
        status_code=500,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "path": str(request.url),
        },
    )
