"""StackNote Backend - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from stacknote.api import api_router
from stacknote.api.auth import router as auth_router
from stacknote.api.health import router as health_router
from stacknote.core import async_session_maker, engine, settings, setup_logging
from stacknote.core.logging import get_logger
from stacknote.middleware import SessionAuthMiddleware

# Import all models to ensure they're registered with Base for Alembic
from stacknote.models import AccessToken, RefreshToken, User  # noqa: F401

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(level=settings.log_level, format_type=settings.log_format)
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    # Check security configuration
    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    yield

    logger.info("Shutting down...")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Cookie-based session authentication for StackNote",
        version=settings.app_version,
        lifespan=lifespan,
        # API docs are only served in debug mode
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )

    # Sessions used by the authentication middleware and health check
    app.state.session_factory = async_session_maker

    # Resolves the access cookie to request.state.principal on every
    # non-public request; never rejects on its own
    app.add_middleware(SessionAuthMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on every response. Credentials are
    # required for the auth cookies to be sent cross-origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Content-Type",
            "Accept",
            "X-Request-ID",
        ],
    )

    # Include routers
    app.include_router(health_router)  # Health at root level
    app.include_router(auth_router)  # Auth at root level (/auth)
    app.include_router(api_router)  # API at /api

    return app


# Application instance
app = create_app()
