# src/threadline/main.py
"""Main entry point for the Threadline application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from threadline.api.v1 import (
    batch_router,
    comments_router,
    notifications_router,
    posts_router,
    search_router,
    social_router,
    users_router,
)
from threadline.api.v1.dependencies import SessionDep
from threadline.core.errors import ServiceError
from threadline.core.logging_config import configure_logging
from threadline.core.settings import settings
from threadline.services.cache import CACHE_ERRORS, get_cache

configure_logging(settings)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=f"{settings.app_name} API",
    description="Social content engine: visibility, feeds, trending, search and comment trees",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Map typed service errors to their HTTP status."""
    logger.debug(
        "%s %s -> %s: %s",
        request.method,
        request.url.path,
        exc.status_code,
        exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# Include API routers
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(social_router, prefix="/api/v1")
app.include_router(search_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(batch_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/health/ready")
def readiness_check(db: SessionDep) -> JSONResponse:
    """Report whether the database and the cache tier answer.

    Any failed check marks the service ``degraded`` with a 503.
    """
    checks: dict[str, str] = {}
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as err:
        logger.warning("Readiness: database check failed: %s", err)
        checks["database"] = "unavailable"

    cache = get_cache()
    if not cache.enabled:
        checks["cache"] = "disabled"
    else:
        try:
            cache.client.ping()
            checks["cache"] = "ok"
        except CACHE_ERRORS as err:
            logger.warning("Readiness: cache check failed: %s", err)
            checks["cache"] = "unavailable"

    ready = "unavailable" not in checks.values()
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ok" if ready else "degraded", "checks": checks},
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": f"{settings.app_name} API",
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("threadline.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
