"""Schemas for URL state updates, pagination and listing responses."""

from __future__ import annotations

from pydantic import BaseModel, Field

from storefront.models.catalog import (
    FacetGroup,
    ProductNode,
    SortSelection,
)


class FilterUpdateRequest(BaseModel):
    """Body for adding, removing or toggling one filter token."""

    query: str = Field("", description="Current query string, without '?'")
    token: str = Field(..., min_length=1)


class SortUpdateRequest(BaseModel):
    """Body for setting the active sort."""

    query: str = ""
    sort: SortSelection


class SortRemoveRequest(BaseModel):
    query: str = ""


class NavigationUpdate(BaseModel):
    """New query string handed to the history integration."""

    query: str
    prevent_scroll_reset: bool = True


class SortOption(BaseModel):
    """Entry of the sort menu."""

    label: str
    sort: SortSelection
    token: str
    checked: bool = False
    count: int | None = None


class PaginationLink(BaseModel):
    """Link to the previous or next page.

    ``enabled`` mirrors ``hasPreviousPage``/``hasNextPage``; a disabled link
    keeps its href but must not be followed.
    """

    href: str
    enabled: bool

    def follow(self) -> str | None:
        """Return the href to navigate to, or None when the link is disabled."""
        if not self.enabled:
            return None
        return self.href


class PaginationLinks(BaseModel):
    previous: PaginationLink
    next: PaginationLink


class CollectionListing(BaseModel):
    """Response body for collection and search listing pages."""

    handle: str | None = None
    title: str
    term: str | None = None
    total: int
    filters: list[str] = Field(default_factory=list)
    sort: SortSelection | None = None
    sort_options: list[SortOption] = Field(default_factory=list)
    facets: list[FacetGroup] = Field(default_factory=list)
    products: list[ProductNode] = Field(default_factory=list)
    pagination: PaginationLinks


class ProductCountResponse(BaseModel):
    total: int


class CascadePlanRequest(BaseModel):
    """Body for planning a cascade between two options."""

    options: list[str] = Field(default_factory=list)
    current: str | None = None
    new_value: str


class CascadeStepModel(BaseModel):
    option: str
    add_at: float
    remove_at: float


class CascadePlanResponse(BaseModel):
    changed: bool
    step_delay: float | None = None
    duration: float = Field(
        0.0, description="Milliseconds until the last highlight clears"
    )
    steps: list[CascadeStepModel] = Field(default_factory=list)
