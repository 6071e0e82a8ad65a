"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.routes import include_api_routes
from storefront.config import settings
from storefront.services.counts.store import close_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    logger.info(
        "Storefront filtering service starting (environment=%s, storefront=%s)",
        settings.ENVIRONMENT,
        "configured" if settings.storefront_enabled else "not configured",
    )

    yield

    await close_redis_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Storefront Filtering",
        description="Collection filtering, facet ordering and pagination service",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
