"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from valueslens.api.middleware.error_handler import error_handler_middleware
from valueslens.api.middleware.latency_logging import latency_logging_middleware
from valueslens.api.middleware.request_size import request_size_limit_middleware
from valueslens.api.routes import checkout, generation, health, profiles, sessions
from valueslens.core.config import get_settings
from valueslens.core.stripe import configure_stripe
from valueslens.schemas.common import API_VERSION

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control back to the application.
    """
    settings = get_settings()
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)

    configure_stripe()
    if not settings.is_generation_configured:
        logger.info("Generation runs on deterministic fallbacks (mock_openai=%s)", settings.mock_openai)
    if not settings.is_storage_configured:
        logger.info("Durable storage not configured; profiles are client-only")

    yield
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="ValuesLens API",
        description="Values assessment backend: generation, sharing and checkout",
        version=API_VERSION,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add error handler middleware (outermost - catches all errors)
    app.add_middleware(BaseHTTPMiddleware, dispatch=error_handler_middleware)

    app.add_middleware(BaseHTTPMiddleware, dispatch=latency_logging_middleware)

    # Rejects oversized requests early
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_size_limit_middleware)

    # Health routes at root level (no prefix)
    app.include_router(health.router)

    api_v1_router = APIRouter(prefix="/api/v1")
    api_v1_router.include_router(generation.router)
    api_v1_router.include_router(sessions.router)
    api_v1_router.include_router(profiles.router)
    api_v1_router.include_router(checkout.router)
    app.include_router(api_v1_router)

    return app


# Create application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "valueslens.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
