"""
FastAPI Production Application

Main entry point for the Commerce Hub API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
import structlog

from commerce_hub.config import Settings, get_settings
from commerce_hub.config.logging import configure_logging
from commerce_hub.container import Services
from commerce_hub.serving.api.handlers import register_exception_handlers
from commerce_hub.serving.api.middleware import RequestLoggingMiddleware
from commerce_hub.serving.api.routes import (
    analytics_router,
    categories_router,
    health_router,
    live_router,
    orders_router,
    products_router,
    reviews_router,
    users_router,
)

logger = structlog.get_logger(__name__)


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Application settings (defaults to the cached environment settings)
        services: Pre-built services; when given the lifespan neither starts nor closes them

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        configure_logging(settings)
        logger.info("Starting Commerce Hub API", environment=settings.app_env)

        owned = app.state.services is None
        if owned:
            app.state.services = await Services.start(settings)

        yield

        logger.info("Shutting down...")
        if owned:
            await app.state.services.close()
            app.state.services = None

    app = FastAPI(
        title="Commerce Hub API",
        description="Catalog, orders, reviews and visitor analytics with a live catalog feed",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(RequestLoggingMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router, tags=["Health"])
    app.include_router(products_router, prefix="/products", tags=["Products"])
    app.include_router(categories_router, prefix="/categories", tags=["Categories"])
    app.include_router(orders_router, prefix="/orders", tags=["Orders"])
    app.include_router(reviews_router, prefix="/reviews", tags=["Reviews"])
    app.include_router(users_router, prefix="/users", tags=["Users"])
    app.include_router(analytics_router, tags=["Analytics"])
    app.include_router(live_router, tags=["Live"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
