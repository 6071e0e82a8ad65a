"""Cursor pagination links that keep the active filter, sort and search term."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

from storefront.config import settings
from storefront.models.catalog import Direction, PageInfo, SortKey
from storefront.models.navigation import PaginationLink, PaginationLinks
from storefront.services.url_state.codec import (
    CURSOR_PARAM,
    DIRECTION_PARAM,
    FILTER_PARAM,
    REVERSE_PARAM,
    SEARCH_TERM_PARAM,
    SORT_KEY_PARAM,
    decode_filters,
)
from storefront.services.url_state.query_state import QueryState

DEFAULT_SORT_KEY = SortKey.BEST_SELLING.value
DEFAULT_REVERSE = "false"


@dataclass(frozen=True)
class PaginationState:
    """Query state carried across page boundaries."""

    sort_key: str = DEFAULT_SORT_KEY
    reverse: str = DEFAULT_REVERSE
    filters: tuple[str, ...] = field(default_factory=tuple)
    search_term: str = ""
    is_search: bool = False

    @classmethod
    def from_query(cls, query: QueryState, is_search: bool = False) -> PaginationState:
        return cls(
            sort_key=query.get(SORT_KEY_PARAM) or DEFAULT_SORT_KEY,
            reverse=query.get(REVERSE_PARAM) or DEFAULT_REVERSE,
            filters=tuple(decode_filters(query)),
            search_term=query.get(SEARCH_TERM_PARAM) or "",
            is_search=is_search,
        )


def _reverse_param(reverse: Any) -> str:
    if isinstance(reverse, bool):
        return "true" if reverse else "false"
    return str(reverse or DEFAULT_REVERSE)


def build_pagination_url(
    cursor: str | None,
    direction: Direction | str,
    state: PaginationState,
    handle: str | None = None,
) -> str:
    """URL of the page reached by moving ``direction`` from ``cursor``."""

    direction = Direction(direction)
    params = (
        QueryState()
        .set(DIRECTION_PARAM, direction.value)
        .set(CURSOR_PARAM, cursor or "")
        .set(SORT_KEY_PARAM, state.sort_key or DEFAULT_SORT_KEY)
        .set(REVERSE_PARAM, _reverse_param(state.reverse))
    )
    for token in state.filters:
        params = params.append(FILTER_PARAM, token)

    if state.is_search:
        params = params.set(SEARCH_TERM_PARAM, state.search_term or "")
        return f"/search?{params.to_string()}"
    if not handle:
        raise ValueError("A collection handle is required outside search")
    return f"/collections/{quote(handle, safe='')}?{params.to_string()}"


def build_pagination_links(
    page_info: PageInfo,
    state: PaginationState,
    handle: str | None = None,
) -> PaginationLinks:
    return PaginationLinks(
        previous=PaginationLink(
            href=build_pagination_url(
                page_info.start_cursor, Direction.PREVIOUS, state, handle
            ),
            enabled=page_info.has_previous_page,
        ),
        next=PaginationLink(
            href=build_pagination_url(
                page_info.end_cursor, Direction.NEXT, state, handle
            ),
            enabled=page_info.has_next_page,
        ),
    )


def pagination_variables(
    query: QueryState,
    page_by: int | None = None,
) -> dict[str, Any]:
    """Query variables selecting the page described by ``cursor``/``direction``."""

    page_by = page_by or settings.PAGE_SIZE
    cursor = query.get(CURSOR_PARAM) or None
    if query.get(DIRECTION_PARAM) == Direction.PREVIOUS.value and cursor:
        return {"last": page_by, "startCursor": cursor}

    variables: dict[str, Any] = {"first": page_by}
    if cursor:
        variables["endCursor"] = cursor
    return variables
