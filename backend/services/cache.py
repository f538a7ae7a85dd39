"""TTL cache for upstream payloads, backed by the cache table.

Entries are keyed "<kind>:<id>" (e.g. "planet:1", "country:Spain") and carry
an absolute expiry in epoch seconds. Expiry is lazy: an expired row may still
exist in the table, but get() treats it exactly like a missing one. DynamoDB's
own TTL sweeper removes such rows eventually.
"""

import logging
from typing import Any

from errors import CacheError, StorageError
from services.clock import Clock, epoch_seconds, utcnow
from services.storage import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_TTL_SECONDS = 1800


def cache_key(kind: str, natural_id: Any) -> str:
    return f"{kind}:{natural_id}"


class TTLCache:
    def __init__(self, storage: KeyValueStore, table: str, clock: Clock = utcnow):
        self._storage = storage
        self._table = table
        self._clock = clock

    async def get(self, kind: str, natural_id: Any) -> Any | None:
        key = cache_key(kind, natural_id)
        try:
            item = await self._storage.get(self._table, {"cacheKey": key})
        except StorageError as e:
            logger.error("Cache read failed for %s: %s", key, e)
            raise CacheError(f"Cache read failed for {key}") from e

        if item is None:
            logger.debug("Cache miss for %s", key)
            return None
        if item.get("ttl", 0) <= epoch_seconds(self._clock()):
            logger.debug("Cache miss for %s (expired)", key)
            return None

        logger.debug("Cache hit for %s", key)
        return item.get("data")

    async def set(self, kind: str, natural_id: Any, payload: Any) -> None:
        key = cache_key(kind, natural_id)
        item = {
            "cacheKey": key,
            "data": payload,
            "ttl": epoch_seconds(self._clock()) + CACHE_TTL_SECONDS,
        }
        try:
            await self._storage.put(self._table, item)
        except StorageError as e:
            logger.error("Cache write failed for %s: %s", key, e)
            raise CacheError(f"Cache write failed for {key}") from e
        logger.debug("Cache write for %s", key)
