"""FastAPI application entry point.

Quantum5ocial API - profiles, feed, Q&A, messaging, marketplaces and the AI assistant
for the quantum-technology community.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from quantum5ocial.routes import api_router
from quantum5ocial.services.errors import DomainError
from quantum5ocial.services.llm import LlmError
from quantum5ocial.settings import get_settings
from quantum5ocial.stores.postgres import init_db, close_db, ping_db
from quantum5ocial.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")


def _error_body(code: str, message: str, detail: dict | None = None) -> dict:
    return {"error": {"code": code, "message": message, "detail": detail}}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()

    # Initialize database (skip in tests if no DB available)
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    # Initialize Redis (caching and DM fan-out degrade without it)
    try:
        await init_redis()
    except Exception:
        logger.exception("Redis init failed")

    if not settings.ai_available:
        logger.warning("AI features disabled (AI_ENABLED=false or OPENAI_API_KEY missing)")

    yield

    # Shutdown
    await close_redis()
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Quantum5ocial community API",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DomainError)
    async def domain_exception_handler(request: Request, exc: DomainError) -> JSONResponse:
        """Render service errors in the structured error format."""
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message, exc.detail))

    @app.exception_handler(LlmError)
    async def llm_exception_handler(request: Request, exc: LlmError) -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content=_error_body("AI_UNAVAILABLE", str(exc) if settings.debug else "AI service unavailable"),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        """Unique or foreign key violations from concurrent writes (double like, double follow...)."""
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=409,
            content=_error_body("CONFLICT", "The request conflicts with existing data, retry it"),
        )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body("INTERNAL_ERROR", str(exc) if settings.debug else "Internal server error"),
        )

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "quantum5ocial.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
