"""History table access: append-only writes and cursor-paginated reads.

All history rows share gsiType="HISTORY" so that a single secondary index
(partition gsiType, sort timestamp) orders the whole history by creation time.
Timestamps are not unique; ties come back in storage order.
"""

import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote, unquote

from errors import InvalidRequestError, StorageError
from services.clock import Clock, isoformat, utcnow
from services.storage import KeyValueStore

logger = logging.getLogger(__name__)

HISTORY_PARTITION = "HISTORY"
PARTITION_ATTRIBUTE = "gsiType"
SORT_ATTRIBUTE = "timestamp"
DEFAULT_INDEX_NAME = "HistoryByTimestampIndex"


@dataclass
class HistoryPage:
    items: list[dict]
    last_key: dict | None = None


def _new_id() -> str:
    return str(uuid.uuid4())


def encode_cursor(last_key: dict) -> str:
    """URL-encode the resume position of a page for the next request."""
    cursor = {"timestamp": last_key.get("timestamp"), "planetId": last_key.get("planetId")}
    return quote(json.dumps(cursor, separators=(",", ":")), safe="!~*'()")


def decode_cursor(raw: str) -> dict:
    """Decode a cursor produced by encode_cursor().

    The cursor is not signed; any JSON object with a string timestamp is
    accepted and its fields are handed to the storage query as-is.
    """
    try:
        cursor = json.loads(unquote(raw))
    except ValueError as e:
        raise InvalidRequestError("Invalid lastEvaluatedKey format") from e
    if not isinstance(cursor, dict) or not isinstance(cursor.get("timestamp"), str):
        raise InvalidRequestError("Invalid lastEvaluatedKey format")
    return cursor


async def _put_item(storage: KeyValueStore, table: str, item: dict, item_id: str, kind: str) -> None:
    logger.debug("Putting %s item %s into %s", kind, item_id, table)
    try:
        await storage.put(table, item)
    except Exception as e:
        logger.error("Failed to store %s item %s in %s: %s", kind, item_id, table, e)
        raise StorageError("Failed to put item") from e
    logger.info("Item stored: %s", item_id)


class BlobStore:
    """Arbitrary JSON payloads, stored as strings outside any index."""

    def __init__(
        self,
        storage: KeyValueStore,
        table: str,
        clock: Clock = utcnow,
        new_id: Callable[[], str] = _new_id,
    ):
        self._storage = storage
        self._table = table
        self._clock = clock
        self._new_id = new_id

    async def append_opaque(self, payload: Any) -> dict:
        item = {
            "id": self._new_id(),
            SORT_ATTRIBUTE: isoformat(self._clock()),
            "data": json.dumps(payload, separators=(",", ":")),
        }
        await _put_item(self._storage, self._table, item, item["id"], "json")
        return item


class HistoryStore:
    def __init__(
        self,
        storage: KeyValueStore,
        table: str,
        index: str = DEFAULT_INDEX_NAME,
        clock: Clock = utcnow,
    ):
        self._storage = storage
        self._table = table
        self._index = index
        self._clock = clock
        logger.info("Initialized history store for table %s", table)

    async def append(self, record: dict) -> dict:
        """Insert a merged planet/weather record into the history index."""
        item = {
            **record,
            "planetId": str(record["planetId"]),
            PARTITION_ATTRIBUTE: HISTORY_PARTITION,
            SORT_ATTRIBUTE: isoformat(self._clock()),
        }
        await _put_item(self._storage, self._table, item, item["planetId"], "history")
        return item

    async def query(
        self,
        page_size: int,
        ascending: bool = False,
        cursor: dict | None = None,
    ) -> HistoryPage:
        """Return up to page_size history records, newest first unless ascending.

        cursor resumes strictly after the position it encodes; last_key on the
        result is set only when more records remain.
        """
        start_key = None
        if cursor:
            start_key = {**cursor, PARTITION_ATTRIBUTE: HISTORY_PARTITION}

        logger.debug(
            "Querying %s/%s (page_size=%d, ascending=%s, has_cursor=%s)",
            self._table, self._index, page_size, ascending, start_key is not None,
        )
        try:
            page = await self._storage.query(
                self._table,
                self._index,
                PARTITION_ATTRIBUTE,
                HISTORY_PARTITION,
                limit=page_size,
                ascending=ascending,
                exclusive_start_key=start_key,
            )
        except Exception as e:
            logger.error(
                "Failed to get items from %s (page_size=%d, ascending=%s): %s",
                self._table, page_size, ascending, e,
            )
            raise StorageError("Failed to get items") from e

        logger.info("Retrieved %d history items (has_more=%s)", len(page.items), page.last_key is not None)
        return HistoryPage(items=page.items, last_key=page.last_key)
