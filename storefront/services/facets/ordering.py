"""Stable display ordering for facet groups."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Iterable, Sequence
from threading import RLock

from storefront.config import settings
from storefront.models.catalog import FacetGroup, FacetValue

logger = logging.getLogger(__name__)


def title_case(text: str | None) -> str:
    """Capitalize the first character of each space-separated word."""

    return " ".join(word[:1].upper() + word[1:] for word in str(text or "").split(" "))


def _missing_value(label: str) -> FacetValue:
    slug = re.sub(r"\s+", "-", label)
    return FacetValue(
        id=f"missing-{slug}",
        label=title_case(label),
        input=label,
        count=0,
    )


def merge_canonical(
    values: Iterable[FacetValue],
    allowed_order: Sequence[str],
) -> list[FacetValue]:
    """One entry per canonical label, in canonical order.

    Server values are matched case-insensitively and shown title-cased;
    canonical labels absent from the response become zero-count stand-ins.
    """

    existing = {str(value.label or "").lower(): value for value in values}
    ordered: list[FacetValue] = []
    for label in allowed_order:
        found = existing.get(label)
        if found is None:
            ordered.append(_missing_value(label))
        else:
            ordered.append(found.model_copy(update={"label": title_case(found.label)}))
    return ordered


class FacetOrderStore:
    """First-seen ordering of facet values, per group.

    A group's ordering is recorded once, the first time it is seen, and only
    read afterwards. One store lives as long as the facet column it serves.
    """

    def __init__(self) -> None:
        self._orders: dict[str, dict[str, int]] = {}

    def remember(self, group: str, values: Sequence[FacetValue]) -> None:
        if self._orders.get(group):
            return
        self._orders[group] = {value.label: index for index, value in enumerate(values)}

    def position(self, group: str, label: str) -> float:
        return self._orders.get(group, {}).get(label, math.inf)

    def order_for(self, group: str) -> dict[str, int]:
        return dict(self._orders.get(group, {}))

    def __contains__(self, group: str) -> bool:
        return bool(self._orders.get(group))


def exclude_legacy_values(group: FacetGroup) -> list[FacetValue]:
    if group.label != settings.LEGACY_CATEGORY_GROUP:
        return list(group.values)
    marker = settings.LEGACY_CATEGORY_EXCLUDE_MARKER
    return [value for value in group.values if marker not in value.label]


def order_free_form(group: FacetGroup, store: FacetOrderStore) -> list[FacetValue]:
    """Sort a group's values by their first-seen position.

    Labels never seen before keep their relative order after the known ones.
    """

    store.remember(group.label, group.values)
    values = exclude_legacy_values(group)
    # sorted() is stable, so unseen labels stay in server order at the end
    return sorted(values, key=lambda value: store.position(group.label, value.label))


def arrange_facet_group(
    group: FacetGroup,
    store: FacetOrderStore,
    allowed_order: Sequence[str] | None = None,
) -> FacetGroup:
    if str(group.label or "").lower() == settings.CANONICAL_CATEGORY_GROUP:
        if allowed_order is None:
            allowed_order = settings.CANONICAL_CATEGORY_ORDER
        values = merge_canonical(group.values, allowed_order)
    else:
        values = order_free_form(group, store)
    return group.model_copy(update={"values": values})


def arrange_facet_groups(
    groups: Iterable[FacetGroup],
    store: FacetOrderStore,
    allowed_order: Sequence[str] | None = None,
) -> list[FacetGroup]:
    return [arrange_facet_group(group, store, allowed_order) for group in groups]


class FacetOrderRegistry:
    """Process-wide holder of one ordering store per facet column scope."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._stores: dict[str, FacetOrderStore] = {}

    def store_for(self, scope: str) -> FacetOrderStore:
        with self._lock:
            store = self._stores.get(scope)
            if store is None:
                store = FacetOrderStore()
                self._stores[scope] = store
                logger.debug("Created facet order store for %s", scope)
            return store


_registry = FacetOrderRegistry()


def get_facet_order_registry() -> FacetOrderRegistry:
    """FastAPI dependency factory."""

    return _registry
