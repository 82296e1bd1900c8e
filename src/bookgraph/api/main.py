"""
FastAPI application for the BookGraph API.

Serves similarity graphs between a selected book and the books whose
embedded fragments are nearest to it, with:
- Async, pooled database access
- Concurrent per-fragment similarity queries
- msgspec JSON serialization
- Uniform {"error": message} error bodies
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import msgspec
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from ..core.config import Settings, get_settings
from ..core.exceptions import BookGraphError
from ..pg_async import AsyncPostgresDB
from .errors import (
    APIError,
    api_error_handler,
    domain_error_handler,
    http_error_handler,
    request_validation_handler,
)
from .routers import graph

logger = logging.getLogger(__name__)


class MSGSpecResponse(Response):
    """Custom response class using msgspec for fast JSON serialization."""

    media_type = "application/json"

    def render(self, content: Any) -> bytes:
        """
        Serialize content using msgspec.

        Args:
            content: Content to serialize

        Returns:
            Serialized JSON bytes
        """
        if content is None:
            return b""
        return msgspec.json.encode(content)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle.

    Startup:
    - Create and open the database connection pool, unless a client was
      passed to create_app

    Shutdown:
    - Close the pool if this lifespan created it
    """
    settings: Settings = app.state.settings
    logger.info(f"Starting {settings.app_name}...")

    owns_db = False
    if app.state.db is None and settings.db_url:
        try:
            db = AsyncPostgresDB.from_settings(settings)
            await db.initialize()
            app.state.db = db
            owns_db = True
            logger.info(
                f"Database connection pool opened (min_size={settings.database_pool_min_size}, max_size={settings.database_pool_size})"
            )
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            # Don't fail startup, let requests handle connection errors
    elif app.state.db is None:
        logger.warning("DATABASE_URL not set; graph endpoints will fail until configured")

    yield

    logger.info(f"Shutting down {settings.app_name}...")
    if owns_db:
        try:
            await app.state.db.close()
        except Exception as e:
            logger.warning(f"Error closing database connections: {e}")
        app.state.db = None


def create_app(
    settings: Settings | None = None,
    db: AsyncPostgresDB | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use (defaults to environment settings)
        db: Pre-built database client; the caller keeps ownership

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Similarity graphs over book embeddings",
        version=settings.app_version,
        default_response_class=MSGSpecResponse,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.db = db

    # CORS middleware - allows web clients to access the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=settings.cors_expose_headers,
    )

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add timing header to all responses."""
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000
        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        if response.status_code >= 400:
            response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate"
        return response

    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(BookGraphError, domain_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Handle unexpected exceptions with consistent format."""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        message = str(exc) if settings.expose_error_details else "An internal error occurred"
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": message},
        )

    @app.get("/health", tags=["health"])
    async def health_check():
        """Basic health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.now(tz=timezone.utc).isoformat()}

    @app.get("/health/db", tags=["health"])
    async def health_check_db():
        """Database connectivity health check."""
        db: AsyncPostgresDB | None = app.state.db
        try:
            if db is None:
                raise RuntimeError("database not configured")
            await db.ping()
            return {
                "status": "healthy",
                "database": "connected",
                "timestamp": datetime.now(tz=timezone.utc).isoformat(),
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "database": "disconnected",
                    "error": "Database connection check failed",
                    "timestamp": datetime.now(tz=timezone.utc).isoformat(),
                },
            )

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "docs": "/docs",
            "endpoints": ["/graph"],
        }

    # Graph endpoint - similarity graph for a selected book
    app.include_router(graph.router, prefix="/graph", tags=["graph"])

    return app


# Create app instance
app = create_app()
