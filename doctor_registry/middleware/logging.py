"""Structured logging setup and per-request log context."""

import logging
import sys
import time
from collections.abc import Callable
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from doctor_registry.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """
    Configure structlog on top of stdlib logging.

    Events pick up whatever the request middleware bound to the context,
    so service logs carry the request id without passing it around.
    """
    log_level = (log_level or settings.log_level).upper()
    log_format = log_format or settings.log_format

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level),
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id to the log context and log each request's outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        logger = structlog.get_logger(__name__)
        started = time.perf_counter()

        try:
            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "request_failed",
                    error=str(e),
                    duration=time.perf_counter() - started,
                )
                raise

            duration = time.perf_counter() - started
            logger.info("request_completed", status_code=response.status_code, duration=duration)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{duration:.6f}"
        return response
