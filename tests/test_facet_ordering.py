"""Tests for facet ordering and canonical category merging."""

from __future__ import annotations

from storefront.models.catalog import FacetGroup, FacetValue
from storefront.services.facets.ordering import (
    FacetOrderRegistry,
    FacetOrderStore,
    arrange_facet_groups,
    merge_canonical,
    order_free_form,
    title_case,
)


def _value(label: str, count: int = 1) -> FacetValue:
    return FacetValue(
        id=f"filter.{label}",
        label=label,
        input=f'{{"tag":"{label}"}}',
        count=count,
    )


def _group(label: str, *values: FacetValue) -> FacetGroup:
    return FacetGroup(id=f"filter.{label}", label=label, values=list(values))


def test_canonical_merge_synthesizes_missing_categories():
    allowed = ["headware", "apparel", "leather goods"]

    merged = merge_canonical([_value("apparel", 5)], allowed)

    assert [(v.label, v.count) for v in merged] == [
        ("Headware", 0),
        ("Apparel", 5),
        ("Leather Goods", 0),
    ]
    assert merged[0].id == "missing-headware"
    assert merged[2].id == "missing-leather-goods"
    assert merged[2].input == "leather goods"
    assert merged[0].disabled and not merged[1].disabled


def test_canonical_merge_ignores_server_order_and_extra_values():
    allowed = ["headware", "apparel"]
    values = [_value("Drinkware", 3), _value("APPAREL", 2), _value("Headware", 4)]

    merged = merge_canonical(values, allowed)

    assert len(merged) == len(allowed)
    assert [v.label for v in merged] == ["Headware", "APPAREL"]
    assert merged[1].input == values[1].input


def test_first_seen_order_is_stable_across_renders():
    store = FacetOrderStore()
    first = _group("Color", _value("A", 3), _value("B", 2), _value("C", 1))
    second = _group("Color", _value("C", 9), _value("A", 0), _value("B", 4))

    assert [v.label for v in order_free_form(first, store)] == ["A", "B", "C"]
    ordered = order_free_form(second, store)

    assert [v.label for v in ordered] == ["A", "B", "C"]
    assert [v.count for v in ordered] == [0, 4, 9]


def test_unseen_labels_are_appended_in_server_order():
    store = FacetOrderStore()
    order_free_form(_group("Size", _value("S"), _value("M")), store)

    ordered = order_free_form(
        _group("Size", _value("XL"), _value("M"), _value("XS"), _value("S")),
        store,
    )

    assert [v.label for v in ordered] == ["S", "M", "XL", "XS"]


def test_store_is_written_once_per_group():
    store = FacetOrderStore()
    store.remember("Color", [_value("A"), _value("B")])
    store.remember("Color", [_value("B"), _value("A")])

    assert store.order_for("Color") == {"A": 0, "B": 1}
    assert "Color" in store
    assert "Size" not in store


def test_legacy_category_group_drops_deprecated_values():
    store = FacetOrderStore()
    group = _group("category", _value("Hats"), _value("mens shirts"), _value("Bags"))

    ordered = order_free_form(group, store)

    assert [v.label for v in ordered] == ["Hats", "Bags"]


def test_legacy_category_marker_is_case_sensitive():
    store = FacetOrderStore()
    group = _group("category", _value("Mens Shirts"), _value("Bags"))

    ordered = order_free_form(group, store)

    assert [v.label for v in ordered] == ["Mens Shirts", "Bags"]


def test_arrange_routes_categories_group_to_canonical_merge():
    store = FacetOrderStore()
    groups = [
        _group("Categories", _value("carry", 2)),
        _group("Color", _value("Red"), _value("Blue")),
    ]

    arranged = arrange_facet_groups(groups, store, allowed_order=["apparel", "carry"])

    assert [v.label for v in arranged[0].values] == ["Apparel", "Carry"]
    assert [v.label for v in arranged[1].values] == ["Red", "Blue"]
    assert "Categories" not in store


def test_title_case():
    assert title_case("leather goods") == "Leather Goods"
    assert title_case("a  b") == "A  B"
    assert title_case("") == ""
    assert title_case(None) == ""


def test_registry_returns_same_store_per_scope():
    registry = FacetOrderRegistry()

    hats = registry.store_for("collection:hats")

    assert registry.store_for("collection:hats") is hats
    assert registry.store_for("search") is not hats
