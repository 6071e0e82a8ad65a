"""Displayed product totals for a collection and its active filters."""

from __future__ import annotations

import logging
import time
from collections.abc import Hashable, Sequence
from threading import RLock

from redis.exceptions import RedisError

from storefront.config import settings
from storefront.services.clients.storefront_client import StorefrontClient
from storefront.services.counts.store import ProductCountStore
from storefront.services.errors import (
    CollectionNotFoundError,
    StaleResultError,
    StorefrontAPIError,
)

logger = logging.getLogger(__name__)

MemoKey = tuple[str, tuple[str, ...], int]


class LatestRequestGuard:
    """Hands out increasing tickets per key; only the newest ticket is current."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._latest: dict[Hashable, int] = {}

    def issue(self, key: Hashable) -> int:
        with self._lock:
            ticket = self._latest.get(key, 0) + 1
            self._latest[key] = ticket
            return ticket

    def is_latest(self, key: Hashable, ticket: int) -> bool:
        with self._lock:
            return self._latest.get(key) == ticket


class ReconcileState:
    """Request tickets and memoized totals shared by every reconciler.

    Memo entries expire after ``ttl_seconds`` so a long-lived process picks up
    catalog changes at the same pace as the Redis count cache.
    """

    def __init__(self, ttl_seconds: float | None = None) -> None:
        self.guard = LatestRequestGuard()
        self._lock = RLock()
        self._ttl = (
            settings.PRODUCT_COUNT_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        )
        self._memo: dict[MemoKey, tuple[int, float]] = {}

    def recall(self, key: MemoKey) -> int | None:
        with self._lock:
            entry = self._memo.get(key)
            if entry is None:
                return None
            total, expires_at = entry
            if expires_at <= time.monotonic():
                del self._memo[key]
                return None
            return total

    def memoize(self, key: MemoKey, total: int) -> None:
        with self._lock:
            self._memo[key] = (total, time.monotonic() + self._ttl)


_state = ReconcileState()


def get_reconcile_state() -> ReconcileState:
    """FastAPI dependency factory."""

    return _state


class ProductCountReconciler:
    """Computes the product count shown for a collection.

    Without filters the count is exact: every product of the collection is
    walked page by page. With filters it is the number of products loaded on
    the current page, which is bounded by the page size.
    """

    def __init__(
        self,
        client: StorefrontClient,
        store: ProductCountStore | None = None,
        state: ReconcileState | None = None,
        page_size: int | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._state = state or ReconcileState()
        self._page_size = page_size or settings.COUNT_PAGE_SIZE

    async def count_all(self, handle: str) -> int:
        """Exact number of products in the unfiltered collection."""

        cached = await self._cached(handle)
        if cached is not None:
            return cached

        total = 0
        cursor: str | None = None
        pages = 0
        while True:
            page = await self._client.fetch_count_page(handle, cursor, self._page_size)
            if page is None:
                raise CollectionNotFoundError(handle)
            pages += 1
            total += page.edge_count
            if not page.page_info.has_next_page:
                break
            cursor = page.page_info.end_cursor
            if not cursor:
                raise StorefrontAPIError(
                    f"Collection {handle} reported a next page without a cursor"
                )

        logger.info(
            "Counted %d products in collection %s over %d pages",
            total,
            handle,
            pages,
        )
        await self._remember(handle, total)
        return total

    async def reconcile(
        self,
        handle: str,
        filters: Sequence[str],
        loaded_node_count: int,
    ) -> int:
        """Total to display for ``handle`` under ``filters``.

        Raises StaleResultError when a newer reconcile for the same handle
        was started while this one was waiting on the storefront.
        """

        key = (handle, tuple(filters), loaded_node_count)
        ticket = self._state.guard.issue(handle)
        memoized = self._state.recall(key)
        if memoized is not None:
            return memoized

        if filters:
            total = loaded_node_count
        else:
            total = await self.count_all(handle)

        if not self._state.guard.is_latest(handle, ticket):
            logger.debug("Discarding stale count for %s (ticket %d)", handle, ticket)
            raise StaleResultError(f"Count for {handle} was superseded")

        self._state.memoize(key, total)
        return total

    async def _cached(self, handle: str) -> int | None:
        if self._store is None:
            return None
        try:
            return await self._store.fetch(handle)
        except RedisError as exc:
            logger.warning("Product count cache unavailable: %s", exc)
            return None

    async def _remember(self, handle: str, total: int) -> None:
        if self._store is None:
            return
        try:
            await self._store.save(handle, total)
        except RedisError as exc:
            logger.warning("Failed caching product count for %s: %s", handle, exc)
