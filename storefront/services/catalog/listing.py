"""Builds collection and search listing pages from the current query string."""

from __future__ import annotations

import logging

from storefront.models.catalog import ListingRequest, PageInfo, SortKey
from storefront.models.navigation import CollectionListing
from storefront.services.clients.storefront_client import StorefrontClient
from storefront.services.counts.reconciler import ProductCountReconciler
from storefront.services.errors import CollectionNotFoundError
from storefront.services.facets.ordering import (
    FacetOrderRegistry,
    arrange_facet_groups,
)
from storefront.services.pagination.cursors import (
    PaginationState,
    build_pagination_links,
    pagination_variables,
)
from storefront.services.url_state.codec import (
    REVERSE_PARAM,
    SEARCH_TERM_PARAM,
    SORT_KEY_PARAM,
    build_sort_options,
    decode_filters,
    decode_sort,
    filters_for_request,
)
from storefront.services.url_state.query_state import QueryState

logger = logging.getLogger(__name__)

SEARCH_SCOPE = "search"


def collection_scope(handle: str) -> str:
    return f"collection:{handle}"


def _request_sort(query: QueryState) -> tuple[SortKey, bool]:
    try:
        sort_key = SortKey(query.get(SORT_KEY_PARAM) or SortKey.BEST_SELLING.value)
    except ValueError:
        sort_key = SortKey.BEST_SELLING
    return sort_key, query.get(REVERSE_PARAM) == "true"


class CatalogListingService:
    """Runs one listing request against the storefront and shapes the result."""

    def __init__(
        self,
        client: StorefrontClient,
        reconciler: ProductCountReconciler,
        order_registry: FacetOrderRegistry,
    ) -> None:
        self._client = client
        self._reconciler = reconciler
        self._order_registry = order_registry

    def build_request(
        self,
        query: QueryState,
        handle: str | None = None,
        term: str | None = None,
    ) -> ListingRequest:
        sort_key, reverse = _request_sort(query)
        return ListingRequest(
            handle=handle,
            term=term,
            filters=filters_for_request(decode_filters(query)),
            sort_key=sort_key,
            reverse=reverse,
            pagination=pagination_variables(query),
        )

    async def collection_listing(
        self,
        handle: str,
        query: QueryState,
    ) -> CollectionListing:
        tokens = decode_filters(query)
        request = self.build_request(query, handle=handle)
        collection = await self._client.fetch_collection(request)
        if collection is None:
            raise CollectionNotFoundError(handle)

        products = collection.products
        facets = arrange_facet_groups(
            products.filters,
            self._order_registry.store_for(collection_scope(handle)),
        )
        total = await self._reconciler.reconcile(
            collection.handle,
            tokens,
            len(products.nodes),
        )
        logger.info(
            "Collection listing built",
            extra={
                "handle": handle,
                "filters": len(tokens),
                "products": len(products.nodes),
                "total": total,
            },
        )
        return CollectionListing(
            handle=collection.handle,
            title=collection.title,
            total=total,
            filters=tokens,
            sort=decode_sort(query),
            sort_options=build_sort_options(query),
            facets=facets,
            products=products.nodes,
            pagination=build_pagination_links(
                products.page_info,
                PaginationState.from_query(query),
                collection.handle,
            ),
        )

    async def search_listing(self, query: QueryState) -> CollectionListing:
        term = (query.get(SEARCH_TERM_PARAM) or "").strip()
        tokens = decode_filters(query)
        state = PaginationState.from_query(query, is_search=True)
        title = f'Search Results for "{term}"'

        if not term:
            return CollectionListing(
                title=title,
                term=term,
                total=0,
                filters=tokens,
                sort=decode_sort(query),
                sort_options=build_sort_options(query, is_search=True),
                pagination=build_pagination_links(PageInfo(), state),
            )

        page = await self._client.search_products(
            self.build_request(query, term=term)
        )
        products = page.products
        facets = arrange_facet_groups(
            products.filters,
            self._order_registry.store_for(SEARCH_SCOPE),
        )
        return CollectionListing(
            title=title,
            term=term,
            total=len(products.nodes),
            filters=tokens,
            sort=decode_sort(query),
            sort_options=build_sort_options(query, is_search=True),
            facets=facets,
            products=products.nodes,
            pagination=build_pagination_links(products.page_info, state),
        )
