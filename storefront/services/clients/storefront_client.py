"""Storefront API client abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Annotated, Any

import httpx
from fastapi import Depends

from storefront.config import settings
from storefront.models.catalog import (
    CollectionPage,
    CountPage,
    ListingRequest,
    PageInfo,
    ProductConnection,
    SearchPage,
)
from storefront.services.errors import StorefrontAPIError

logger = logging.getLogger(__name__)

PRODUCT_ITEM_FRAGMENT = """
  fragment ProductItem on Product {
    id
    handle
    title
    featuredImage { id altText url width height }
    priceRange {
      minVariantPrice { amount currencyCode }
      maxVariantPrice { amount currencyCode }
    }
  }
"""

FACET_FIELDS = """
    id
    label
    presentation
    type
    values { count id input label swatch { color } }
"""

PAGE_INFO_FIELDS = "pageInfo { hasPreviousPage hasNextPage startCursor endCursor }"

COLLECTION_QUERY = f"""
  {PRODUCT_ITEM_FRAGMENT}
  query Collection(
    $handle: String!
    $first: Int
    $last: Int
    $startCursor: String
    $endCursor: String
    $filters: [ProductFilter!]
    $reverse: Boolean
    $sortKey: ProductCollectionSortKeys
  ) {{
    collection(handle: $handle) {{
      id
      handle
      title
      description
      products(
        first: $first,
        last: $last,
        before: $startCursor,
        after: $endCursor,
        filters: $filters,
        reverse: $reverse,
        sortKey: $sortKey
      ) {{
        filters {{ {FACET_FIELDS} }}
        nodes {{ ...ProductItem }}
        {PAGE_INFO_FIELDS}
      }}
    }}
  }}
"""

SEARCH_QUERY = f"""
  {PRODUCT_ITEM_FRAGMENT}
  query RegularSearch(
    $term: String!
    $first: Int
    $last: Int
    $startCursor: String
    $endCursor: String
    $filters: [ProductFilter!]
    $reverse: Boolean
    $sortKey: SearchSortKeys
  ) {{
    products: search(
      after: $endCursor,
      before: $startCursor,
      first: $first,
      last: $last,
      query: $term,
      reverse: $reverse,
      sortKey: $sortKey,
      types: [PRODUCT],
      unavailableProducts: HIDE,
      productFilters: $filters,
    ) {{
      productFilters {{ {FACET_FIELDS} }}
      nodes {{ ...on Product {{ ...ProductItem }} }}
      {PAGE_INFO_FIELDS}
    }}
  }}
"""

COUNT_QUERY = """
  query CollectionProducts($handle: String!, $cursor: String, $first: Int!) {
    collection(handle: $handle) {
      products(first: $first, after: $cursor) {
        pageInfo { hasNextPage endCursor }
        edges { node { id } }
      }
    }
  }
"""

# Search sort keys supported by the storefront API
_SEARCH_SORT_KEYS = {"PRICE", "RELEVANCE"}


class StorefrontClient(ABC):
    """Abstract query interface to the commerce platform."""

    @abstractmethod
    async def fetch_collection(self, request: ListingRequest) -> CollectionPage | None:
        """Return one page of a collection, or None if it does not exist."""

    @abstractmethod
    async def search_products(self, request: ListingRequest) -> SearchPage:
        """Return one page of product search results."""

    @abstractmethod
    async def fetch_count_page(
        self,
        handle: str,
        cursor: str | None,
        first: int,
    ) -> CountPage | None:
        """Return one page of the unfiltered product walk, or None if not found."""


class HttpStorefrontClient(StorefrontClient):
    """Client posting GraphQL queries to the storefront API over HTTP."""

    def __init__(
        self,
        *,
        api_url: str,
        access_token: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not access_token:
            raise ValueError("Storefront access token is required to initialize client")
        self._api_url = api_url
        self._headers = {
            "Content-Type": "application/json",
            "X-Shopify-Storefront-Access-Token": access_token,
        }
        self._timeout = timeout
        self._transport = transport

    async def _query(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self._api_url,
                    json={"query": query, "variables": variables},
                    headers=self._headers,
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise StorefrontAPIError(f"Storefront request failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise StorefrontAPIError("Storefront returned a non-JSON body") from exc

        errors = body.get("errors")
        if errors:
            message = ", ".join(error.get("message", "") for error in errors)
            raise StorefrontAPIError(f"Storefront API errors: {message}")
        return body.get("data") or {}

    @staticmethod
    def _listing_variables(request: ListingRequest) -> dict[str, Any]:
        return {
            "filters": request.filters,
            "reverse": request.reverse,
            "sortKey": request.sort_key.value,
            **request.pagination,
        }

    async def fetch_collection(self, request: ListingRequest) -> CollectionPage | None:
        variables = {"handle": request.handle, **self._listing_variables(request)}
        data = await self._query(COLLECTION_QUERY, variables)
        collection = data.get("collection")
        if not collection:
            return None
        return CollectionPage.model_validate(collection)

    async def search_products(self, request: ListingRequest) -> SearchPage:
        variables = {"term": request.term or "", **self._listing_variables(request)}
        if variables["sortKey"] not in _SEARCH_SORT_KEYS:
            variables["sortKey"] = "RELEVANCE"
        data = await self._query(SEARCH_QUERY, variables)
        products = data.get("products")
        if products is None:
            raise StorefrontAPIError("No search data returned from storefront API")
        return SearchPage(
            term=request.term or "",
            products=ProductConnection(
                filters=products.get("productFilters") or [],
                nodes=products.get("nodes") or [],
                page_info=products.get("pageInfo") or {},
            ),
        )

    async def fetch_count_page(
        self,
        handle: str,
        cursor: str | None,
        first: int,
    ) -> CountPage | None:
        data = await self._query(
            COUNT_QUERY,
            {"handle": handle, "cursor": cursor, "first": first},
        )
        products = (data.get("collection") or {}).get("products")
        if not products:
            return None
        return CountPage(
            page_info=PageInfo.model_validate(products.get("pageInfo") or {}),
            edge_count=len(products.get("edges") or []),
        )


_storefront_client: StorefrontClient | None = None


def _initialize_storefront() -> StorefrontClient | None:
    if not settings.storefront_enabled:
        logger.info("Storefront API token not configured; client disabled")
        return None
    return HttpStorefrontClient(
        api_url=settings.storefront_api_url,
        access_token=settings.STOREFRONT_API_TOKEN,
        timeout=settings.STOREFRONT_TIMEOUT_SECONDS,
    )


_storefront_client = _initialize_storefront()


def get_storefront_client() -> StorefrontClient | None:
    """FastAPI dependency returning the configured storefront client if any."""

    return _storefront_client


StorefrontDependency = Annotated[
    StorefrontClient | None,
    Depends(get_storefront_client),
]
