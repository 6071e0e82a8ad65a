"""Redis-backed cache of exact collection product counts."""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime

import redis.asyncio as redis

from storefront.config import settings

logger = logging.getLogger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """Return a singleton Redis client for the current process."""

    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


async def close_redis_client() -> None:
    """Close the process-wide Redis client if one was created."""

    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


class ProductCountStore:
    """Wrapper responsible for caching unfiltered collection totals."""

    def __init__(self, client: redis.Redis):
        self._client = client
        self._prefix = settings.PRODUCT_COUNT_KEY_PREFIX
        self._ttl = settings.PRODUCT_COUNT_TTL_SECONDS

    def _key(self, handle: str) -> str:
        return f"{self._prefix}{handle}"

    async def fetch(self, handle: str) -> int | None:
        raw = await self._client.get(self._key(handle))
        if not raw:
            return None
        try:
            return int(json.loads(raw)["total"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Discarding malformed cached count for %s", handle)
            return None

    async def save(self, handle: str, total: int) -> None:
        payload = {"handle": handle, "total": total, "updated_at": self._timestamp()}
        await self._client.set(self._key(handle), json.dumps(payload), ex=self._ttl)

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(UTC).isoformat()


def get_product_count_store() -> ProductCountStore:
    return ProductCountStore(get_redis_client())
