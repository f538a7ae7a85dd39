"""
Pytest configuration and shared fixtures for the planet weather API tests.

Upstream APIs are served by httpx.MockTransport handlers, DynamoDB by the
InMemoryStore, and time by a FakeClock that tests advance explicitly.
"""

from __future__ import annotations

import os
import random
from datetime import datetime, timedelta, timezone
from typing import Callable
from unittest.mock import Mock

import httpx
import pytest

# Set environment variables BEFORE any imports of the application modules
os.environ.setdefault("WEATHER_API_KEY", "test-api-key")
os.environ.setdefault("CACHE_TABLE_NAME", "test-cache-table")
os.environ.setdefault("HISTORY_TABLE_NAME", "test-history-table")
os.environ.setdefault("STORE_TABLE_NAME", "test-store-table")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")

from config import Settings  # noqa: E402
from services.context import ServiceContext, set_context  # noqa: E402
from services.storage import InMemoryStore  # noqa: E402

CACHE_TABLE = "test-cache-table"
HISTORY_TABLE = "test-history-table"
STORE_TABLE = "test-store-table"
HISTORY_INDEX = "HistoryByTimestampIndex"

TATOOINE = {
    "name": "Tatooine",
    "rotation_period": "23",
    "orbital_period": "304",
    "diameter": "10465",
    "climate": "arid",
    "gravity": "1 standard",
    "terrain": "desert",
    "surface_water": "1",
    "population": "200000",
    "url": "https://swapi.dev/api/planets/1/",
}

SPAIN_WEATHER = {
    "name": "Spain",
    "coord": {"lon": -3.7, "lat": 40.4},
    "weather": [{"id": 800, "main": "Clear", "description": "sunny", "icon": "01d"}],
    "base": "stations",
    "main": {
        "temp": 25,
        "feels_like": 24.5,
        "temp_min": 23,
        "temp_max": 27,
        "pressure": 1015,
        "humidity": 60,
    },
    "visibility": 10000,
    "wind": {"speed": 10, "deg": 250, "gust": 12},
    "clouds": {"all": 0},
    "dt": 1616161616,
    "timezone": 3600,
    "id": 3117735,
    "cod": 200,
}


class FakeClock:
    """Callable clock frozen at a UTC instant until advanced."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class Upstream:
    """Records requests and answers them with a per-test handler."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(500)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def hosts(self) -> list[str]:
        return [request.url.host for request in self.requests]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 3, 20, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def storage() -> InMemoryStore:
    store = InMemoryStore()
    store.create_table(CACHE_TABLE, ("cacheKey",))
    store.create_table(
        HISTORY_TABLE,
        ("planetId", "timestamp"),
        indexes={HISTORY_INDEX: ("gsiType", "timestamp")},
    )
    store.create_table(STORE_TABLE, ("id",))
    return store


@pytest.fixture
def upstream() -> Upstream:
    return Upstream()


@pytest.fixture
def http_client(upstream: Upstream) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(upstream))


@pytest.fixture
def rng() -> Mock:
    """Deterministic stand-in for random.Random: planet 1, Spain."""
    fake = Mock(spec=random.Random)
    fake.randint.return_value = 1
    fake.choice.return_value = "Spain"
    return fake


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def context(settings, storage, http_client, clock, rng) -> ServiceContext:
    ctx = ServiceContext(
        settings=settings,
        storage=storage,
        http=http_client,
        clock=clock,
        rng=rng,
        new_id=lambda: "test-uuid",
    )
    set_context(ctx)
    yield ctx
    set_context(None)
