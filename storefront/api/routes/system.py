"""System-level routes such as health checks."""

from __future__ import annotations

import httpx
from fastapi import APIRouter

from storefront.config import settings

router = APIRouter(tags=["system"])


@router.get("/")
async def read_root() -> dict[str, str]:
    """Hello World endpoint used by smoke tests."""

    return {"message": "Hello World"}


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint with storefront API connectivity check."""

    if not settings.storefront_enabled:
        storefront_status = "not_configured"
    else:
        token = settings.STOREFRONT_API_TOKEN or ""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    settings.storefront_api_url,
                    json={"query": "{ shop { name } }"},
                    headers={"X-Shopify-Storefront-Access-Token": token},
                    timeout=5.0,
                )
                storefront_status = (
                    "connected" if response.status_code == 200 else "disconnected"
                )
        except httpx.HTTPError:
            storefront_status = "disconnected"

    return {
        "status": "healthy",
        "storefront": storefront_status,
        "environment": settings.ENVIRONMENT,
    }
