import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shortlink_app.api import redirect, urls
from shortlink_app.cache.factory import CacheBackend, CacheFactory
from shortlink_app.config import Settings, load_settings
from shortlink_app.database.connection import ConnectionPool
from shortlink_app.logging_config import setup_logging
from shortlink_app.schemas.url import HealthResponse
from shortlink_app.store.mapping_store import MappingStore

logger = logging.getLogger("shortlink_app.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the process-wide resources on startup and release them on shutdown."""
    settings: Settings = app.state.settings

    logger.info("Starting %s (%s)", settings.app_name, settings.environment)

    pool = ConnectionPool(settings)
    pool.create_schema()
    logger.info(
        "Database ready: backend=%s pool_size=%d queue_limit=%d",
        pool.engine.url.get_backend_name(), settings.db_pool_size, settings.db_queue_limit,
    )

    app.state.pool = pool
    app.state.store = MappingStore(
        pool,
        strict_ids=settings.strict_id_format,
        id_max_length=settings.id_max_length,
        url_max_length=settings.max_url_length,
    )
    app.state.cache = await CacheFactory.create(CacheBackend(settings.cache_backend), settings)

    yield

    logger.info("Shutting down...")
    await app.state.cache.close()
    pool.dispose()
    logger.info("Service stopped")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application around an explicit settings object."""
    settings = settings or load_settings()
    setup_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        json_format=settings.log_json,
        echo_sql=settings.db_echo,
    )

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="A URL shortener service built with FastAPI",
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.info("Malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    @app.get("/")
    def read_root():
        """Root endpoint with API information"""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.app_version,
            "docs": "/docs",
            "redoc": "/redoc"
        }

    @app.get("/health", response_model=HealthResponse)
    def health_check(request: Request):
        """Health check endpoint"""
        database_ok = request.app.state.pool.ping()
        return HealthResponse(
            status="healthy" if database_ok else "unhealthy",
            database=database_ok,
        )

    ######## Include routers (catch-all redirect last)
    app.include_router(urls.router, prefix="/api")
    app.include_router(redirect.router)

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)
