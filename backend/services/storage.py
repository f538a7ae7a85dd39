"""Key-value storage backends.

DynamoDBStore is the production backend. InMemoryStore mirrors the subset of
DynamoDB behaviour the services rely on (primary-key overwrite, ordered
secondary-index queries with exclusive start keys) for local runs and tests.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol

import boto3
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError

from errors import StorageError

logger = logging.getLogger(__name__)


@dataclass
class QueryPage:
    items: list[dict]
    last_key: dict | None = None


class KeyValueStore(Protocol):
    async def get(self, table: str, key: dict) -> dict | None: ...

    async def put(self, table: str, item: dict) -> None: ...

    async def query(
        self,
        table: str,
        index: str,
        partition_key: str,
        partition_value: str,
        limit: int,
        ascending: bool = False,
        exclusive_start_key: dict | None = None,
    ) -> QueryPage: ...


def _to_dynamo(value: Any) -> Any:
    """DynamoDB rejects Python floats; round-trip through JSON to get Decimals."""
    return json.loads(json.dumps(value), parse_float=Decimal)


def _from_dynamo(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _from_dynamo(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_dynamo(v) for v in value]
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


class DynamoDBStore:
    """boto3-backed store. Blocking SDK calls run in a worker thread."""

    def __init__(self, resource=None, region_name: str | None = None):
        self._resource = resource if resource is not None else boto3.resource(
            "dynamodb", region_name=region_name
        )

    def _table(self, table: str):
        return self._resource.Table(table)

    async def get(self, table: str, key: dict) -> dict | None:
        try:
            response = await asyncio.to_thread(self._table(table).get_item, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"DynamoDB get_item failed on {table}: {e}") from e
        item = response.get("Item")
        return _from_dynamo(item) if item is not None else None

    async def put(self, table: str, item: dict) -> None:
        try:
            await asyncio.to_thread(self._table(table).put_item, Item=_to_dynamo(item))
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"DynamoDB put_item failed on {table}: {e}") from e

    async def query(
        self,
        table: str,
        index: str,
        partition_key: str,
        partition_value: str,
        limit: int,
        ascending: bool = False,
        exclusive_start_key: dict | None = None,
    ) -> QueryPage:
        kwargs: dict = {
            "IndexName": index,
            "KeyConditionExpression": Key(partition_key).eq(partition_value),
            "Limit": limit,
            "ScanIndexForward": ascending,
        }
        if exclusive_start_key:
            kwargs["ExclusiveStartKey"] = exclusive_start_key

        try:
            response = await asyncio.to_thread(self._table(table).query, **kwargs)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"DynamoDB query failed on {table}/{index}: {e}") from e

        last_key = response.get("LastEvaluatedKey")
        return QueryPage(
            items=_from_dynamo(response.get("Items", [])),
            last_key=_from_dynamo(last_key) if last_key else None,
        )


@dataclass
class _Table:
    key_attributes: tuple[str, ...]
    # index name -> (partition attribute, sort attribute)
    indexes: dict[str, tuple[str, str]] = field(default_factory=dict)
    items: list[dict] = field(default_factory=list)


class InMemoryStore:
    """Process-local store with DynamoDB-like primary keys and sorted indexes."""

    def __init__(self):
        self._tables: dict[str, _Table] = {}

    def create_table(
        self,
        name: str,
        key_attributes: tuple[str, ...],
        indexes: dict[str, tuple[str, str]] | None = None,
    ) -> None:
        self._tables[name] = _Table(key_attributes=key_attributes, indexes=indexes or {})

    def items(self, table: str) -> list[dict]:
        return [json.loads(json.dumps(item)) for item in self._get_table(table).items]

    def _get_table(self, name: str) -> _Table:
        try:
            return self._tables[name]
        except KeyError:
            raise StorageError(f"Table not found: {name}") from None

    @staticmethod
    def _matches(item: dict, key: dict) -> bool:
        return all(item.get(attr) == value for attr, value in key.items())

    async def get(self, table: str, key: dict) -> dict | None:
        for item in self._get_table(table).items:
            if self._matches(item, key):
                return json.loads(json.dumps(item))
        return None

    async def put(self, table: str, item: dict) -> None:
        t = self._get_table(table)
        missing = [attr for attr in t.key_attributes if attr not in item]
        if missing:
            raise StorageError(f"Item is missing key attributes {missing} for {table}")

        stored = json.loads(json.dumps(item))
        key = {attr: stored[attr] for attr in t.key_attributes}
        for i, existing in enumerate(t.items):
            if self._matches(existing, key):
                t.items[i] = stored
                return
        t.items.append(stored)

    async def query(
        self,
        table: str,
        index: str,
        partition_key: str,
        partition_value: str,
        limit: int,
        ascending: bool = False,
        exclusive_start_key: dict | None = None,
    ) -> QueryPage:
        t = self._get_table(table)
        if index not in t.indexes:
            raise StorageError(f"Index not found: {table}/{index}")
        index_partition, sort_key = t.indexes[index]
        if partition_key != index_partition:
            raise StorageError(f"Index {index} is partitioned on {index_partition}, not {partition_key}")

        candidates = [
            item for item in t.items
            if item.get(partition_key) == partition_value and sort_key in item
        ]
        # sorted() is stable, so ties keep insertion order
        candidates = sorted(candidates, key=lambda item: item[sort_key], reverse=not ascending)

        if exclusive_start_key:
            candidates = self._after(candidates, exclusive_start_key, sort_key, ascending)

        page = candidates[:limit]
        last_key = None
        if len(candidates) > limit and page:
            key_attrs = (*t.key_attributes, index_partition, sort_key)
            last_key = {attr: page[-1][attr] for attr in key_attrs if attr in page[-1]}

        return QueryPage(items=json.loads(json.dumps(page)), last_key=last_key)

    def _after(self, items: list[dict], start_key: dict, sort_key: str, ascending: bool) -> list[dict]:
        for i, item in enumerate(items):
            if self._matches(item, start_key):
                return items[i + 1:]

        # Start key names no stored item: resume strictly past its sort value
        if sort_key not in start_key:
            return items
        position = start_key[sort_key]
        if ascending:
            return [item for item in items if item[sort_key] > position]
        return [item for item in items if item[sort_key] < position]
