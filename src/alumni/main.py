"""
Alumni API - Main Application Entry Point

This module initializes and configures the FastAPI application including:
- Logging
- Session token service (signing secret loaded once)
- Database and Redis connections
- Background job scheduler
- Error envelope handlers
- API routing and health check endpoints
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from alumni.api import api_router
from alumni.core.config import settings
from alumni.core.database import close_db, init_db
from alumni.core.redis import close_redis, init_redis, is_redis_available
from alumni.core.scheduler import start_scheduler, stop_scheduler
from alumni.core.security import build_token_service
from alumni.modules.auth import register_auth_jobs

logger = logging.getLogger(__name__)

STATUS_ERROR_CODES = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "BAD_REQUEST",
    409: "CONFLICT",
    429: "RATE_LIMIT_EXCEEDED",
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events including:
    - Token service (fails startup if the signing secret is unavailable)
    - Redis connection
    - Database connection
    - Background job scheduler
    """
    configure_logging()
    logger.info(f"Starting {settings.app_name} in {settings.python_env} mode...")

    app.state.token_service = build_token_service(settings)
    logger.info("[OK] Token service ready")

    try:
        await init_redis()
        logger.info("[OK] Redis connected")
    except Exception as e:
        logger.warning(f"[FAIL] Redis connection failed, rate limits use memory: {e}")
        if settings.is_production:
            raise

    try:
        await init_db()
        logger.info("[OK] Database connected")
    except Exception as e:
        logger.error(f"[FAIL] Database connection failed: {e}")
        if settings.is_production:
            raise

    try:
        register_auth_jobs()
        await start_scheduler()
        logger.info("[OK] Background scheduler started")
    except Exception as e:
        logger.error(f"[FAIL] Background scheduler failed to start: {e}")
        if settings.is_production:
            raise

    yield  # Application runs here

    logger.info(f"Shutting down {settings.app_name}...")
    await stop_scheduler()
    await close_redis()
    await close_db()
    logger.info("[OK] Cleanup complete")


def _error_body(status_code: int, detail) -> dict:
    """Flatten an HTTPException detail into the {error, message} envelope."""
    if isinstance(detail, dict) and "error" in detail:
        return detail
    error = STATUS_ERROR_CODES.get(status_code, "INTERNAL_ERROR")
    return {"error": error, "message": str(detail)}


async def http_exception_handler(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.status_code, exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"error": "BAD_REQUEST", "message": message})


async def unhandled_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Alumni network API: registration, approval, profiles and classrooms",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.include_router(api_router)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/", tags=["Root"])
    async def root() -> dict[str, str]:
        """Root endpoint - API welcome message."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "status": "running",
            "environment": settings.python_env,
        }

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint for container orchestration."""
        return {"status": "healthy"}

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> dict[str, str]:
        """Readiness check endpoint. Rate limits fall back to memory without Redis."""
        return {
            "status": "ready",
            "redis": "connected" if is_redis_available() else "unavailable",
        }

    if settings.is_development:
        from alumni.core.scheduler import list_registered_jobs, trigger_job_manually

        @app.get("/debug/jobs", tags=["Debug"])
        async def list_jobs():
            """List registered background jobs and their next run time."""
            return {"jobs": list_registered_jobs()}

        @app.post("/debug/jobs/{job_id}/trigger", tags=["Debug"])
        async def trigger_job(job_id: str):
            """Run a background job immediately."""
            try:
                return await trigger_job_manually(job_id)
            except ValueError as e:
                raise HTTPException(status_code=404, detail=str(e)) from e

    return app


app = create_app()
