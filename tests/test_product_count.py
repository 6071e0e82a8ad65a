"""Tests for the collection product count reconciler."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storefront.models.catalog import CountPage, PageInfo
from storefront.services.counts.reconciler import (
    LatestRequestGuard,
    ProductCountReconciler,
    ReconcileState,
)
from storefront.services.counts.store import ProductCountStore
from storefront.services.errors import (
    CollectionNotFoundError,
    StaleResultError,
    StorefrontAPIError,
)

RED = '{"color":"red"}'


@pytest.mark.asyncio
async def test_unfiltered_count_walks_every_page(storefront_stub):
    storefront_stub.add_collection("shirts", total=260)
    reconciler = ProductCountReconciler(storefront_stub, page_size=250)

    total = await reconciler.reconcile("shirts", [], loaded_node_count=12)

    assert total == 260
    assert storefront_stub.count_calls == [
        ("shirts", None, 250),
        ("shirts", "250", 250),
    ]


@pytest.mark.asyncio
async def test_filtered_count_uses_loaded_nodes(storefront_stub):
    storefront_stub.add_collection("shirts", total=260)
    reconciler = ProductCountReconciler(storefront_stub)

    total = await reconciler.reconcile("shirts", [RED], loaded_node_count=12)

    assert total == 12
    assert storefront_stub.count_calls == []


@pytest.mark.asyncio
async def test_missing_collection_is_not_zero(storefront_stub):
    reconciler = ProductCountReconciler(storefront_stub)

    with pytest.raises(CollectionNotFoundError) as excinfo:
        await reconciler.reconcile("ghost", [], loaded_node_count=0)

    assert excinfo.value.handle == "ghost"


@pytest.mark.asyncio
async def test_reconcile_is_memoized_per_state(storefront_stub):
    storefront_stub.add_collection("shirts", total=10)
    reconciler = ProductCountReconciler(storefront_stub)

    await reconciler.reconcile("shirts", [], loaded_node_count=10)
    await reconciler.reconcile("shirts", [], loaded_node_count=10)
    assert len(storefront_stub.count_calls) == 1

    await reconciler.reconcile("shirts", [], loaded_node_count=9)
    assert len(storefront_stub.count_calls) == 2


@pytest.mark.asyncio
async def test_superseded_count_is_discarded(storefront_stub):
    storefront_stub.add_collection("shirts", total=600)
    reconciler = ProductCountReconciler(storefront_stub, page_size=250)

    slow = asyncio.create_task(reconciler.reconcile("shirts", [], loaded_node_count=12))
    await asyncio.sleep(0)
    fresh = await reconciler.reconcile("shirts", [RED], loaded_node_count=3)

    assert fresh == 3
    with pytest.raises(StaleResultError):
        await slow


@pytest.mark.asyncio
async def test_exact_count_is_cached_in_redis(storefront_stub, redis_client):
    storefront_stub.add_collection("shirts", total=30)
    store = ProductCountStore(redis_client)

    first = await ProductCountReconciler(storefront_stub, store).count_all("shirts")
    second = await ProductCountReconciler(storefront_stub, store).count_all("shirts")

    assert first == second == 30
    assert len(storefront_stub.count_calls) == 1
    assert await store.fetch("shirts") == 30


@pytest.mark.asyncio
async def test_cache_failure_falls_back_to_walk(storefront_stub):
    storefront_stub.add_collection("shirts", total=5)
    store = AsyncMock(spec=ProductCountStore)
    store.fetch.side_effect = RedisConnectionError("down")
    store.save.side_effect = RedisConnectionError("down")

    total = await ProductCountReconciler(storefront_stub, store).count_all("shirts")

    assert total == 5


@pytest.mark.asyncio
async def test_next_page_without_cursor_is_an_error():
    client = AsyncMock()
    client.fetch_count_page.return_value = CountPage(
        page_info=PageInfo(has_next_page=True, end_cursor=None),
        edge_count=250,
    )

    with pytest.raises(StorefrontAPIError):
        await ProductCountReconciler(client).count_all("shirts")


def test_guard_tracks_latest_ticket():
    guard = LatestRequestGuard()

    first = guard.issue("shirts")
    second = guard.issue("shirts")

    assert not guard.is_latest("shirts", first)
    assert guard.is_latest("shirts", second)
    assert guard.is_latest("hats", guard.issue("hats"))


async def _wait_for_count_walk(stub) -> None:
    for _ in range(100):
        if stub.count_calls:
            return
        await asyncio.sleep(0)
    raise AssertionError("count walk never started")


@pytest.mark.asyncio
async def test_memoized_reconcile_still_supersedes_pending_walk(storefront_stub):
    storefront_stub.add_collection("shirts", total=260)
    reconciler = ProductCountReconciler(storefront_stub, page_size=250)
    assert await reconciler.reconcile("shirts", [RED], loaded_node_count=12) == 12

    storefront_stub.count_gate = asyncio.Event()
    unfiltered = asyncio.create_task(
        reconciler.reconcile("shirts", [], loaded_node_count=12)
    )
    await _wait_for_count_walk(storefront_stub)

    filtered = await reconciler.reconcile("shirts", [RED], loaded_node_count=12)
    storefront_stub.count_gate.set()

    assert filtered == 12
    with pytest.raises(StaleResultError):
        await unfiltered


@pytest.mark.asyncio
async def test_state_is_shared_between_reconcilers(storefront_stub):
    storefront_stub.add_collection("shirts", total=40)
    state = ReconcileState()

    await ProductCountReconciler(storefront_stub, state=state).reconcile(
        "shirts", [], loaded_node_count=12
    )
    total = await ProductCountReconciler(storefront_stub, state=state).reconcile(
        "shirts", [], loaded_node_count=12
    )

    assert total == 40
    assert len(storefront_stub.count_calls) == 1


def test_memo_entries_expire():
    state = ReconcileState(ttl_seconds=0)
    state.memoize(("shirts", (), 12), 40)

    assert state.recall(("shirts", (), 12)) is None

    fresh = ReconcileState(ttl_seconds=60)
    fresh.memoize(("shirts", (), 12), 40)
    assert fresh.recall(("shirts", (), 12)) == 40
