"""Routes that apply filter and sort changes to a query string."""

from __future__ import annotations

from fastapi import APIRouter

from storefront.models.navigation import (
    FilterUpdateRequest,
    NavigationUpdate,
    SortRemoveRequest,
    SortUpdateRequest,
)
from storefront.services.url_state.codec import SearchParamsNavigator
from storefront.services.url_state.query_state import QueryState

router = APIRouter(tags=["filters"])


def _navigator(query: str) -> SearchParamsNavigator:
    return SearchParamsNavigator(QueryState.parse(query))


@router.post(
    "/filters/add",
    response_model=NavigationUpdate,
    summary="Add a filter token, replacing any token of the same facet group",
)
async def add_filter(payload: FilterUpdateRequest) -> NavigationUpdate:
    return _navigator(payload.query).add_filter(payload.token)


@router.post(
    "/filters/remove",
    response_model=NavigationUpdate,
    summary="Remove a filter token",
)
async def remove_filter(payload: FilterUpdateRequest) -> NavigationUpdate:
    return _navigator(payload.query).remove_filter(payload.token)


@router.post(
    "/filters/toggle",
    response_model=NavigationUpdate,
    summary="Add the filter token when inactive, remove it otherwise",
)
async def toggle_filter(payload: FilterUpdateRequest) -> NavigationUpdate:
    return _navigator(payload.query).toggle_filter(payload.token)


@router.post(
    "/sort",
    response_model=NavigationUpdate,
    summary="Set the active sort order",
)
async def set_sort(payload: SortUpdateRequest) -> NavigationUpdate:
    return _navigator(payload.query).set_sort(payload.sort)


@router.post(
    "/sort/remove",
    response_model=NavigationUpdate,
    summary="Clear the active sort order",
)
async def remove_sort(payload: SortRemoveRequest) -> NavigationUpdate:
    return _navigator(payload.query).remove_sort()
