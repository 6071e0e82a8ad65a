"""API route registration."""

from fastapi import FastAPI

from storefront.api.routes import collections, filters, system, transitions


def include_api_routes(app: FastAPI) -> None:
    """Attach all API routers to the application."""

    app.include_router(system.router)
    app.include_router(collections.router)
    app.include_router(filters.router)
    app.include_router(transitions.router)
