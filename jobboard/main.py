"""JobBoard Backend - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from jobboard.api import api_router
from jobboard.api.auth import router as auth_router
from jobboard.api.errors import register_exception_handlers
from jobboard.api.health import router as health_router
from jobboard.core import engine, settings, setup_logging
from jobboard.core.database import init_models
from jobboard.core.logging import get_logger
from jobboard.middleware import (
    AuthGateMiddleware,
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
)

# Import all models to ensure they're registered with Base
from jobboard.models import JobPosting, User  # noqa: F401

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"Security configuration: {warning}")

    await init_models()

    yield

    logger.info("Shutting down...")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Job board API: accounts, sessions and job postings",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    register_exception_handlers(app)

    # Bearer-token gate for /api/*
    app.add_middleware(AuthGateMiddleware)

    app.add_middleware(SecurityHeadersMiddleware)

    # Wraps the gate, so 401 responses carry a request id as well
    app.add_middleware(RequestContextMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on ALL responses, including 401 from the gate.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID"],
    )

    app.include_router(health_router)  # Health at root level
    app.include_router(auth_router)  # Auth at root level (/auth)
    app.include_router(api_router)  # API at /api

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
        }

    return app


# Application instance
app = create_app()
