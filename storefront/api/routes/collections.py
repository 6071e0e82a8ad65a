"""Routes serving collection and search listings and product counts."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Request, status

from storefront.models.navigation import CollectionListing, ProductCountResponse
from storefront.services.catalog.listing import CatalogListingService
from storefront.services.clients.storefront_client import (
    StorefrontClient,
    StorefrontDependency,
)
from storefront.services.counts.reconciler import (
    ProductCountReconciler,
    ReconcileState,
    get_reconcile_state,
)
from storefront.services.counts.store import (
    ProductCountStore,
    get_product_count_store,
)
from storefront.services.errors import (
    CollectionNotFoundError,
    StaleResultError,
    StorefrontAPIError,
)
from storefront.services.facets.ordering import (
    FacetOrderRegistry,
    get_facet_order_registry,
)
from storefront.services.url_state.query_state import QueryState

logger = logging.getLogger(__name__)

router = APIRouter(tags=["collections"])


def _require_client(client: StorefrontDependency) -> StorefrontClient:
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Storefront API is not configured",
        )
    return client


ClientDependency = Annotated[StorefrontClient, Depends(_require_client)]
CountStoreDependency = Annotated[ProductCountStore, Depends(get_product_count_store)]
RegistryDependency = Annotated[FacetOrderRegistry, Depends(get_facet_order_registry)]
ReconcileStateDependency = Annotated[ReconcileState, Depends(get_reconcile_state)]


def _build_reconciler(
    client: ClientDependency,
    store: CountStoreDependency,
    state: ReconcileStateDependency,
) -> ProductCountReconciler:
    return ProductCountReconciler(client, store, state)


ReconcilerDependency = Annotated[ProductCountReconciler, Depends(_build_reconciler)]


def _build_listing_service(
    client: ClientDependency,
    reconciler: ReconcilerDependency,
    registry: RegistryDependency,
) -> CatalogListingService:
    return CatalogListingService(client, reconciler, registry)


ListingDependency = Annotated[CatalogListingService, Depends(_build_listing_service)]


@router.get(
    "/collections/{handle}",
    response_model=CollectionListing,
    summary="Collection listing with ordered facets and pagination links",
)
async def get_collection(
    request: Request,
    service: ListingDependency,
    handle: str = Path(..., min_length=1),
) -> CollectionListing:
    query = QueryState.parse(request.url.query)
    try:
        return await service.collection_listing(handle, query)
    except CollectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StaleResultError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except StorefrontAPIError as exc:
        logger.exception("Collection listing failed for %s", handle)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get(
    "/search",
    response_model=CollectionListing,
    summary="Product search listing",
)
async def search(request: Request, service: ListingDependency) -> CollectionListing:
    query = QueryState.parse(request.url.query)
    try:
        return await service.search_listing(query)
    except StorefrontAPIError as exc:
        logger.exception("Search listing failed")
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.get(
    "/api/collection-product-count/{handle}",
    response_model=ProductCountResponse,
    summary="Exact number of products in an unfiltered collection",
)
async def get_collection_product_count(
    reconciler: ReconcilerDependency,
    handle: str = Path(..., min_length=1),
) -> ProductCountResponse:
    try:
        total = await reconciler.count_all(handle)
    except CollectionNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Collection not found") from exc
    except StorefrontAPIError as exc:
        logger.exception("Product count failed for %s", handle)
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return ProductCountResponse(total=total)
