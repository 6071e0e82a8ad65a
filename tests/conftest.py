"""Pytest configuration and fixtures for the storefront filtering service."""

from __future__ import annotations

import asyncio
import heapq
import itertools
from collections.abc import Callable

import pytest
import pytest_asyncio
from fakeredis import aioredis as fakeredis
from httpx import ASGITransport, AsyncClient

from storefront.models.catalog import (
    CollectionPage,
    CountPage,
    FacetGroup,
    ListingRequest,
    PageInfo,
    ProductConnection,
    ProductNode,
    SearchPage,
)
from storefront.services.clients.storefront_client import (
    StorefrontClient,
    get_storefront_client,
)
from storefront.services.counts.reconciler import (
    ReconcileState,
    get_reconcile_state,
)
from storefront.services.counts.store import ProductCountStore, get_product_count_store
from storefront.services.facets.ordering import (
    FacetOrderRegistry,
    get_facet_order_registry,
)
from storefront.services.transitions.scheduler import Scheduler


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "asyncio: marks tests as async tests")


def make_nodes(count: int, prefix: str = "prod") -> list[ProductNode]:
    return [
        ProductNode(id=f"gid://shopify/Product/{prefix}-{i}", handle=f"{prefix}-{i}")
        for i in range(count)
    ]


class StubStorefrontClient(StorefrontClient):
    """In-memory storefront returning canned collections."""

    def __init__(self) -> None:
        self.collections: dict[str, dict] = {}
        self.search_page: SearchPage | None = None
        self.requests: list[ListingRequest] = []
        self.count_calls: list[tuple[str, str | None, int]] = []
        self.count_gate: asyncio.Event | None = None

    def add_collection(
        self,
        handle: str,
        *,
        total: int,
        title: str | None = None,
        loaded: int = 12,
        filters: list[FacetGroup] | None = None,
        page_info: PageInfo | None = None,
    ) -> None:
        self.collections[handle] = {
            "title": title or handle.title(),
            "total": total,
            "nodes": make_nodes(min(loaded, total), handle),
            "filters": filters or [],
            "page_info": page_info or PageInfo(),
        }

    async def fetch_collection(self, request: ListingRequest) -> CollectionPage | None:
        await asyncio.sleep(0)
        self.requests.append(request)
        entry = self.collections.get(request.handle or "")
        if entry is None:
            return None
        return CollectionPage(
            id=f"gid://shopify/Collection/{request.handle}",
            handle=request.handle,
            title=entry["title"],
            products=ProductConnection(
                filters=entry["filters"],
                nodes=entry["nodes"],
                page_info=entry["page_info"],
            ),
        )

    async def search_products(self, request: ListingRequest) -> SearchPage:
        await asyncio.sleep(0)
        self.requests.append(request)
        return self.search_page or SearchPage(term=request.term or "")

    async def fetch_count_page(
        self,
        handle: str,
        cursor: str | None,
        first: int,
    ) -> CountPage | None:
        await asyncio.sleep(0)
        self.count_calls.append((handle, cursor, first))
        if self.count_gate is not None:
            await self.count_gate.wait()
        entry = self.collections.get(handle)
        if entry is None:
            return None
        offset = int(cursor or 0)
        size = max(0, min(first, entry["total"] - offset))
        has_next = offset + size < entry["total"]
        return CountPage(
            page_info=PageInfo(
                has_next_page=has_next,
                end_cursor=str(offset + size) if has_next else None,
            ),
            edge_count=size,
        )


class VirtualScheduler(Scheduler):
    """Scheduler driven by a manual clock, in milliseconds."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, int, Callable[[], None]]] = []
        self._sequence = itertools.count()

    def schedule(self, delay, callback, generation=0) -> None:
        heapq.heappush(
            self._queue,
            (self.now + delay, next(self._sequence), generation, callback),
        )

    def cancel_all(self, generation: int) -> None:
        self._queue = [entry for entry in self._queue if entry[2] != generation]
        heapq.heapify(self._queue)

    @property
    def pending(self) -> int:
        return len(self._queue)

    def advance(self, milliseconds: float) -> None:
        target = self.now + milliseconds
        while self._queue and self._queue[0][0] <= target:
            due, _, _, callback = heapq.heappop(self._queue)
            self.now = due
            callback()
        self.now = target

    def run_all(self) -> None:
        while self._queue:
            self.advance(max(entry[0] for entry in self._queue) - self.now)


@pytest.fixture()
def scheduler() -> VirtualScheduler:
    return VirtualScheduler()


@pytest.fixture()
def storefront_stub():
    """Replace the storefront client with an in-memory stub."""
    from storefront.main import app

    stub = StubStorefrontClient()
    app.dependency_overrides[get_storefront_client] = lambda: stub
    yield stub
    app.dependency_overrides.pop(get_storefront_client, None)


@pytest.fixture(autouse=True)
def facet_registry():
    """Give every test its own facet ordering registry."""
    from storefront.main import app

    registry = FacetOrderRegistry()
    app.dependency_overrides[get_facet_order_registry] = lambda: registry
    yield registry
    app.dependency_overrides.pop(get_facet_order_registry, None)


@pytest.fixture(autouse=True)
def reconcile_state():
    """Give every test its own count tickets and memo."""
    from storefront.main import app

    state = ReconcileState()
    app.dependency_overrides[get_reconcile_state] = lambda: state
    yield state
    app.dependency_overrides.pop(get_reconcile_state, None)


@pytest_asyncio.fixture()
async def redis_client():
    """Provide a fake Redis client for each test."""
    from storefront.main import app

    client = fakeredis.FakeRedis(decode_responses=True)
    app.dependency_overrides[get_product_count_store] = lambda: ProductCountStore(
        client
    )
    try:
        yield client
    finally:
        await client.flushdb()
        await client.aclose()
        app.dependency_overrides.pop(get_product_count_store, None)


@pytest_asyncio.fixture()
async def client(redis_client, storefront_stub):
    """Return an HTTPX async client pointing at the FastAPI app."""
    from storefront.main import app

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client
