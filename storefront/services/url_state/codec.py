"""Mapping between URL query parameters and filter/sort selections."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from storefront.config import settings
from storefront.models.catalog import FilterSelection, SortKey, SortSelection
from storefront.models.navigation import NavigationUpdate, SortOption
from storefront.services.url_state.query_state import QueryState

logger = logging.getLogger(__name__)

FILTER_PARAM = "filter"
SORT_KEY_PARAM = "sortKey"
REVERSE_PARAM = "reverse"
CURSOR_PARAM = "cursor"
DIRECTION_PARAM = "direction"
SEARCH_TERM_PARAM = "q"

PAGINATION_PARAMS = (DIRECTION_PARAM, CURSOR_PARAM)

_NOT_JSON = object()


def _load_json(token: str) -> Any:
    try:
        return json.loads(token)
    except (TypeError, ValueError):
        return _NOT_JSON


def filter_group_key(token: str, raw_grouping: str | None = None) -> str | None:
    """Return the facet group a filter token belongs to.

    JSON object tokens are grouped by their first key. Anything else is
    grouped according to ``raw_grouping``: ``"none"`` leaves it ungrouped
    (``None``), ``"prefix"`` uses the text before the first ``:``.
    """

    parsed = _load_json(token)
    if isinstance(parsed, dict):
        return next(iter(parsed), None)

    policy = raw_grouping or settings.FILTER_RAW_TOKEN_GROUPING
    if policy == "prefix" and ":" in token:
        return token.split(":", 1)[0]
    return None


def decode_filters(query: QueryState) -> list[str]:
    """All active filter tokens, in URL order."""

    return query.get_all(FILTER_PARAM)


def decode_filter_selections(query: QueryState) -> list[FilterSelection]:
    """Structured view of the JSON object filter tokens.

    Tokens that are not JSON objects carry no facet key and are skipped.
    """

    selections: list[FilterSelection] = []
    for token in decode_filters(query):
        parsed = _load_json(token)
        if not isinstance(parsed, dict) or not parsed:
            continue
        facet_key = next(iter(parsed))
        selections.append(
            FilterSelection(facet_key=facet_key, value=parsed[facet_key], token=token)
        )
    return selections


def filters_for_request(tokens: list[str]) -> list[dict[str, Any]]:
    """Convert filter tokens into the objects expected by the storefront API."""

    filters: list[dict[str, Any]] = []
    for token in tokens:
        parsed = _load_json(token)
        if isinstance(parsed, dict):
            filters.append(parsed)
        else:
            logger.warning("Ignoring filter token that is not a JSON object: %s", token)
    return filters


def decode_sort(query: QueryState) -> SortSelection | None:
    """The active sort, present only when both sort parameters exist."""

    sort_key = query.get(SORT_KEY_PARAM)
    reverse = query.get(REVERSE_PARAM)
    if sort_key is None or reverse is None:
        return None
    try:
        key = SortKey(sort_key)
    except ValueError:
        logger.debug("Unknown sort key in query: %s", sort_key)
        return None
    return SortSelection(sort_key=key, reverse=reverse == "true")


def parse_sort_token(token: str) -> SortSelection | None:
    """Parse a ``{"reverse": ..., "sortKey": ...}`` sort token."""

    parsed = _load_json(token)
    if not isinstance(parsed, dict):
        return None
    try:
        return SortSelection(
            sort_key=SortKey(parsed.get("sortKey")),
            reverse=bool(parsed.get("reverse", False)),
        )
    except ValueError:
        return None


def sort_token(sort: SortSelection) -> str:
    return json.dumps(
        {"reverse": sort.reverse, "sortKey": sort.sort_key.value},
        separators=(",", ":"),
    )


def encode_add_filter(
    current: QueryState,
    token: str,
    raw_grouping: str | None = None,
) -> QueryState:
    """Add a filter token, replacing any active token of the same group."""

    group = filter_group_key(token, raw_grouping)
    existing = decode_filters(current)
    if group is None:
        kept = [active for active in existing if active != token]
    else:
        kept = [
            active
            for active in existing
            if filter_group_key(active, raw_grouping) != group
        ]
    kept.append(token)

    updated = current.delete(FILTER_PARAM, *PAGINATION_PARAMS)
    for active in kept:
        updated = updated.append(FILTER_PARAM, active)
    return updated


def encode_remove_filter(current: QueryState, token: str) -> QueryState:
    """Remove exactly the matching filter token."""

    kept = [active for active in decode_filters(current) if active != token]
    updated = current.delete(FILTER_PARAM, *PAGINATION_PARAMS)
    for active in kept:
        updated = updated.append(FILTER_PARAM, active)
    return updated


def encode_sort(current: QueryState, sort: SortSelection) -> QueryState:
    return (
        current.set(SORT_KEY_PARAM, sort.sort_key.value)
        .set(REVERSE_PARAM, "true" if sort.reverse else "false")
        .delete(*PAGINATION_PARAMS)
    )


def encode_remove_sort(current: QueryState) -> QueryState:
    return current.delete(SORT_KEY_PARAM, REVERSE_PARAM, *PAGINATION_PARAMS)


def is_filter_checked(query: QueryState, token: str) -> bool:
    return token in decode_filters(query)


def is_sort_checked(query: QueryState, sort: SortSelection) -> bool:
    return query.get(REVERSE_PARAM) == (
        "true" if sort.reverse else "false"
    ) and query.get(SORT_KEY_PARAM) == sort.sort_key.value


def toggle_filter(current: QueryState, token: str) -> QueryState:
    if is_filter_checked(current, token):
        return encode_remove_filter(current, token)
    return encode_add_filter(current, token)


SORT_MENU: tuple[tuple[str, SortSelection], ...] = (
    ("Alphabetically, A-Z", SortSelection(sort_key=SortKey.TITLE, reverse=False)),
    ("Alphabetically, Z-A", SortSelection(sort_key=SortKey.TITLE, reverse=True)),
    ("Date, New to Old", SortSelection(sort_key=SortKey.CREATED, reverse=True)),
    ("Date, Old to New", SortSelection(sort_key=SortKey.CREATED, reverse=False)),
    ("Price, Low to High", SortSelection(sort_key=SortKey.PRICE, reverse=False)),
    ("Price, High to Low", SortSelection(sort_key=SortKey.PRICE, reverse=True)),
)

# Search results cannot be ordered by title or creation date
_SEARCH_UNSUPPORTED = {SortKey.TITLE, SortKey.CREATED}


def build_sort_options(query: QueryState, is_search: bool = False) -> list[SortOption]:
    """The sort menu with the active entry checked."""

    options = []
    for label, sort in SORT_MENU:
        count = None
        if is_search and sort.sort_key in _SEARCH_UNSUPPORTED:
            count = 0
        options.append(
            SortOption(
                label=label,
                sort=sort,
                token=sort_token(sort),
                checked=is_sort_checked(query, sort),
                count=count,
            )
        )
    return options


class SearchParamsNavigator:
    """Applies query updates in issue order on top of the latest state.

    Updates are functions of the current state, so two updates issued from
    different callbacks never overwrite each other with a stale snapshot.
    """

    def __init__(self, initial: QueryState | None = None) -> None:
        self._state = initial or QueryState()
        self.history: list[NavigationUpdate] = []

    @property
    def state(self) -> QueryState:
        return self._state

    def set_search_params(
        self, update: Callable[[QueryState], QueryState]
    ) -> NavigationUpdate:
        self._state = update(self._state)
        navigation = NavigationUpdate(
            query=self._state.to_string(),
            prevent_scroll_reset=True,
        )
        self.history.append(navigation)
        logger.debug("Query updated to %s", navigation.query)
        return navigation

    def add_filter(self, token: str) -> NavigationUpdate:
        return self.set_search_params(lambda state: encode_add_filter(state, token))

    def remove_filter(self, token: str) -> NavigationUpdate:
        return self.set_search_params(lambda state: encode_remove_filter(state, token))

    def toggle_filter(self, token: str) -> NavigationUpdate:
        return self.set_search_params(lambda state: toggle_filter(state, token))

    def set_sort(self, sort: SortSelection) -> NavigationUpdate:
        return self.set_search_params(lambda state: encode_sort(state, sort))

    def remove_sort(self) -> NavigationUpdate:
        return self.set_search_params(encode_remove_sort)
