"""Tests for the history store and its pagination cursor."""

import json
import logging
from unittest.mock import AsyncMock
from urllib.parse import quote, unquote

import pytest

from conftest import HISTORY_INDEX, HISTORY_TABLE, STORE_TABLE
from errors import InvalidRequestError, StorageError
from services.history import BlobStore, HistoryStore, decode_cursor, encode_cursor
from services.storage import QueryPage

RECORD = {
    "planetId": 1,
    "planetName": "Tatooine",
    "climate": "arid",
    "terrain": "desert",
    "population": "200000",
    "weather": {
        "description": "sunny",
        "temperature": {"value": 30, "unit": "°C"},
        "feelsLike": {"value": 35, "unit": "°C"},
        "humidity": {"value": 40, "unit": "%"},
        "windSpeed": {"value": 10, "unit": "m/s"},
        "pressure": {"value": 1015, "unit": "hPa"},
        "visibility": {"value": 10000, "unit": "m"},
        "cloudCoverage": {"value": 0, "unit": "%"},
    },
}


@pytest.fixture
def history(storage, clock) -> HistoryStore:
    return HistoryStore(storage, HISTORY_TABLE, index=HISTORY_INDEX, clock=clock)


async def _append_many(history, clock, count: int) -> list[str]:
    timestamps = []
    for planet_id in range(1, count + 1):
        item = await history.append({**RECORD, "planetId": planet_id})
        timestamps.append(item["timestamp"])
        clock.advance(1)
    return timestamps


@pytest.mark.asyncio
async def test_append_normalizes_and_tags_record(history, storage):
    await history.append(RECORD)

    [item] = storage.items(HISTORY_TABLE)
    assert item["planetId"] == "1"
    assert item["gsiType"] == "HISTORY"
    assert item["timestamp"] == "2024-03-20T12:00:00.000Z"
    assert item["planetName"] == "Tatooine"
    assert item["weather"] == RECORD["weather"]


@pytest.mark.asyncio
async def test_append_opaque_stores_stringified_json(storage, clock):
    blobs = BlobStore(storage, STORE_TABLE, clock=clock, new_id=lambda: "test-uuid")
    payload = {"name": "Test Item", "value": 123, "nested": {"key": "value"}}

    await blobs.append_opaque(payload)

    [item] = storage.items(STORE_TABLE)
    assert item == {
        "id": "test-uuid",
        "timestamp": "2024-03-20T12:00:00.000Z",
        "data": '{"name":"Test Item","value":123,"nested":{"key":"value"}}',
    }
    assert json.loads(item["data"]) == payload
    assert "gsiType" not in item


@pytest.mark.asyncio
async def test_append_opaque_generates_fresh_ids(storage, clock):
    blobs = BlobStore(storage, STORE_TABLE, clock=clock)

    first = await blobs.append_opaque({"a": 1})
    second = await blobs.append_opaque({"a": 1})

    assert first["id"] != second["id"]
    assert len(storage.items(STORE_TABLE)) == 2


@pytest.mark.asyncio
async def test_put_failure_hides_cause(clock, caplog):
    storage = AsyncMock()
    storage.put.side_effect = StorageError("DynamoDB put_item failed: ProvisionedThroughputExceeded")
    history = HistoryStore(storage, HISTORY_TABLE, clock=clock)

    with pytest.raises(StorageError) as exc_info:
        await history.append(RECORD)

    assert str(exc_info.value) == "Failed to put item"
    assert "ProvisionedThroughputExceeded" in caplog.text


@pytest.mark.asyncio
async def test_blob_put_failure_hides_cause(clock, caplog):
    storage = AsyncMock()
    storage.put.side_effect = StorageError("DynamoDB put_item failed: ValidationException")
    blobs = BlobStore(storage, STORE_TABLE, clock=clock)

    with pytest.raises(StorageError) as exc_info:
        await blobs.append_opaque({"a": 1})

    assert str(exc_info.value) == "Failed to put item"
    assert "ValidationException" in caplog.text
    storage.query.assert_not_called()


@pytest.mark.asyncio
async def test_query_newest_first_by_default(history, clock):
    timestamps = await _append_many(history, clock, 5)

    page = await history.query(10)

    assert [item["timestamp"] for item in page.items] == list(reversed(timestamps))
    assert page.last_key is None


@pytest.mark.asyncio
async def test_query_ascending(history, clock):
    timestamps = await _append_many(history, clock, 5)

    page = await history.query(10, ascending=True)

    assert [item["timestamp"] for item in page.items] == timestamps


@pytest.mark.asyncio
async def test_query_ignores_items_outside_history_index(history, storage, clock):
    await history.append(RECORD)
    await storage.put(HISTORY_TABLE, {"planetId": "blob", "timestamp": "2030-01-01T00:00:00.000Z"})

    page = await history.query(10)

    assert [item["planetId"] for item in page.items] == ["1"]


@pytest.mark.asyncio
@pytest.mark.parametrize("ascending", [False, True])
async def test_cursor_pages_do_not_overlap(history, clock, ascending):
    timestamps = await _append_many(history, clock, 5)

    seen = []
    cursor = None
    pages = 0
    while True:
        page = await history.query(2, ascending=ascending, cursor=cursor)
        seen.extend(item["timestamp"] for item in page.items)
        pages += 1
        if page.last_key is None:
            break
        cursor = decode_cursor(encode_cursor(page.last_key))

    expected = timestamps if ascending else list(reversed(timestamps))
    assert seen == expected
    assert pages == 3


@pytest.mark.asyncio
async def test_cursor_becomes_exclusive_start_key(clock):
    storage = AsyncMock()
    storage.query.return_value = QueryPage(items=[])
    history = HistoryStore(storage, HISTORY_TABLE, index=HISTORY_INDEX, clock=clock)

    await history.query(10, cursor={"timestamp": "2024-03-20T12:00:00Z"})

    args, kwargs = storage.query.call_args
    assert args == (HISTORY_TABLE, HISTORY_INDEX, "gsiType", "HISTORY")
    assert kwargs == {
        "limit": 10,
        "ascending": False,
        "exclusive_start_key": {"gsiType": "HISTORY", "timestamp": "2024-03-20T12:00:00Z"},
    }


@pytest.mark.asyncio
async def test_cursor_cannot_override_partition(clock):
    storage = AsyncMock()
    storage.query.return_value = QueryPage(items=[])
    history = HistoryStore(storage, HISTORY_TABLE, clock=clock)

    await history.query(5, cursor={"timestamp": "t", "planetId": "3", "gsiType": "OTHER"})

    start_key = storage.query.call_args.kwargs["exclusive_start_key"]
    assert start_key == {"timestamp": "t", "planetId": "3", "gsiType": "HISTORY"}


@pytest.mark.asyncio
async def test_query_failure_is_generic_and_logged(clock, caplog):
    caplog.set_level(logging.ERROR)
    storage = AsyncMock()
    storage.query.side_effect = StorageError("DynamoDB query failed: AccessDenied")
    history = HistoryStore(storage, HISTORY_TABLE, clock=clock)

    with pytest.raises(StorageError) as exc_info:
        await history.query(25, ascending=True)

    assert str(exc_info.value) == "Failed to get items"
    assert "test-history-table" in caplog.text
    assert "page_size=25" in caplog.text
    assert "AccessDenied" in caplog.text


def test_encode_cursor_keeps_only_position():
    raw = encode_cursor({"gsiType": "HISTORY", "timestamp": "2024-03-20T12:00:00.000Z", "planetId": "4"})

    assert json.loads(unquote(raw)) == {
        "timestamp": "2024-03-20T12:00:00.000Z",
        "planetId": "4",
    }
    assert "%7B" in raw


def test_decode_cursor_accepts_url_encoded_json():
    raw = quote('{"timestamp":"2024-03-20T12:00:00Z","planetId":"1"}')

    assert decode_cursor(raw) == {"timestamp": "2024-03-20T12:00:00Z", "planetId": "1"}


@pytest.mark.parametrize(
    "raw",
    ["not json", quote('["2024-03-20"]'), quote('{"planetId":"1"}'), quote('{"timestamp":5}')],
)
def test_decode_cursor_rejects_malformed(raw):
    with pytest.raises(InvalidRequestError, match="Invalid lastEvaluatedKey format"):
        decode_cursor(raw)
