"""Catalog domain models shared with the storefront API."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class SortKey(str, Enum):
    """Product sort keys understood by the storefront API."""

    TITLE = "TITLE"
    CREATED = "CREATED"
    PRICE = "PRICE"
    BEST_SELLING = "BEST_SELLING"
    RELEVANCE = "RELEVANCE"


class Direction(str, Enum):
    """Pagination direction carried in the `direction` query parameter."""

    NEXT = "next"
    PREVIOUS = "previous"


class SortSelection(BaseModel):
    """The single active sort order."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sort_key: SortKey = Field(..., alias="sortKey")
    reverse: bool = False


class FilterSelection(BaseModel):
    """One active facet constraint decoded from a filter token."""

    model_config = ConfigDict(frozen=True)

    facet_key: str
    value: Any
    token: str = Field(..., description="Original token as carried in the URL")


class Swatch(BaseModel):
    color: str | None = None


class FacetValue(BaseModel):
    """A single selectable facet value with its co-occurring product count."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    label: str
    input: str = Field(..., description="Opaque constraint token")
    count: int = 0
    swatch: Swatch | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def disabled(self) -> bool:
        """Zero-count values stay visible but cannot narrow further."""
        return self.count == 0


class FacetGroup(BaseModel):
    """A filterable attribute and its values as returned by the storefront."""

    model_config = ConfigDict(populate_by_name=True)

    id: str | None = None
    label: str
    presentation: str | None = None
    type: str | None = None
    values: list[FacetValue] = Field(default_factory=list)


class PageInfo(BaseModel):
    """Relay-style page information."""

    model_config = ConfigDict(populate_by_name=True)

    has_next_page: bool = Field(False, alias="hasNextPage")
    has_previous_page: bool = Field(False, alias="hasPreviousPage")
    start_cursor: str | None = Field(None, alias="startCursor")
    end_cursor: str | None = Field(None, alias="endCursor")


class ProductNode(BaseModel):
    """Product summary; fields beyond the identifiers are passed through."""

    model_config = ConfigDict(extra="allow")

    id: str
    handle: str | None = None
    title: str | None = None


class ProductConnection(BaseModel):
    """Products of one listing page together with their facets."""

    model_config = ConfigDict(populate_by_name=True)

    filters: list[FacetGroup] = Field(default_factory=list)
    nodes: list[ProductNode] = Field(default_factory=list)
    page_info: PageInfo = Field(default_factory=PageInfo, alias="pageInfo")


class CollectionPage(BaseModel):
    """A collection as returned by the storefront collection query."""

    id: str
    handle: str
    title: str
    description: str | None = None
    products: ProductConnection = Field(default_factory=ProductConnection)


class SearchPage(BaseModel):
    """Product search results for a search term."""

    term: str
    products: ProductConnection = Field(default_factory=ProductConnection)


class CountPage(BaseModel):
    """One page of the exhaustive product count walk."""

    page_info: PageInfo
    edge_count: int = Field(..., ge=0)


class ListingRequest(BaseModel):
    """Request sent to the query collaborator for one listing page."""

    handle: str | None = None
    term: str | None = None
    filters: list[dict[str, Any]] = Field(default_factory=list)
    sort_key: SortKey = SortKey.BEST_SELLING
    reverse: bool = False
    pagination: dict[str, Any] = Field(default_factory=dict)
