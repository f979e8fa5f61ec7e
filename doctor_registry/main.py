"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from doctor_registry.api.router import api_router
from doctor_registry.config import settings
from doctor_registry.core.exceptions import AppException
from doctor_registry.database import Database
from doctor_registry.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
)
from doctor_registry.middleware.logging import LoggingMiddleware, configure_logging

configure_logging()
logger = structlog.get_logger()

STATIC_DIR = Path(settings.static_dir)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Opens the database context on startup and disposes it on shutdown.
    """
    logger.info("application_startup", environment=settings.environment, port=settings.port)

    database = Database(
        settings.database_url,
        echo=settings.debug,
        application_name=settings.app_name,
    )
    await database.connect()
    app.state.database = database

    if await database.check_connection():
        logger.info("database_connected")
        if settings.create_tables_on_startup:
            try:
                await database.create_tables()
                logger.info("database_tables_ready")
            except Exception as e:
                logger.error("database_table_creation_failed", error=str(e))
    else:
        logger.error("database_connection_failed", url=database.engine.url.render_as_string())

    if not Path(settings.upload_dir).is_dir():
        logger.warning("upload_dir_missing", upload_dir=settings.upload_dir)

    yield

    logger.info("application_shutdown")
    await database.disconnect()
    logger.info("database_connections_closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Doctor registration intake service",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LoggingMiddleware)

app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router)

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=False,
    excluded_handlers=["/docs", "/redoc", "/openapi.json", "/static"],
).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)


@app.get("/", tags=["Root"], include_in_schema=False)
async def root() -> FileResponse:
    """Serve the registration landing page."""
    return FileResponse(STATIC_DIR / "index.html", media_type="text/html")


if STATIC_DIR.is_dir():
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "doctor_registry.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
