"""Main entry point for the Bellyfed rankings service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from bellyfed.api.v1 import rankings_router, uploads_router
from bellyfed.core.errors import BellyfedError
from bellyfed.core.logging import configure_logging
from bellyfed.core.settings import settings
from bellyfed.services.analytics import get_analytics_client

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Bellyfed Rankings API",
    description="Dish rankings, stats and photo uploads for Bellyfed",
    version=settings.app_version,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(rankings_router, prefix="/api")
app.include_router(uploads_router, prefix="/api")


@app.exception_handler(BellyfedError)
async def handle_bellyfed_error(request: Request, exc: BellyfedError) -> JSONResponse:
    """Render expected failures in the standard error envelope."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        # Internal detail stays in the logs.
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """Report malformed bodies and query strings as 400s."""
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg', '')}"
        for error in errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": details},
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Log unexpected failures and hide their detail from clients."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    logger.info("%s %s starting", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    await get_analytics_client().close()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Service name, version and docs location."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("bellyfed.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
