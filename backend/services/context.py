"""Explicit service wiring.

Routes receive a ServiceContext rather than reaching for module-level
clients. One context is built lazily per process and reused across
invocations; tests and local runs can install their own with set_context().
"""

import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Callable

import httpx

from config import Settings, settings
from services.cache import TTLCache
from services.clock import Clock, utcnow
from services.history import BlobStore, HistoryStore
from services.retry import RetryPolicy
from services.storage import DynamoDBStore, KeyValueStore
from services.swapi import PlanetService
from services.weather import WeatherService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    storage: KeyValueStore
    http: httpx.AsyncClient
    clock: Clock = utcnow
    rng: random.Random = field(default_factory=random.Random)
    new_id: Callable[[], str] = lambda: str(uuid.uuid4())

    def cache(self) -> TTLCache:
        return TTLCache(self.storage, self.settings.cache_table_name, clock=self.clock)

    def planet_service(self) -> PlanetService:
        return PlanetService(self.cache(), self.http, self.settings.swapi_base_url)

    def weather_service(self) -> WeatherService:
        return WeatherService(
            self.cache(),
            self.http,
            self.settings.weather_base_url,
            self.settings.weather_api_key,
            policy=RetryPolicy(
                max_retries=self.settings.weather_max_retries,
                retry_not_found=self.settings.weather_retry_not_found,
            ),
            rng=self.rng,
            repick_country=self.settings.weather_repick_country,
        )

    def history_store(self) -> HistoryStore:
        return HistoryStore(
            self.storage,
            self.settings.history_table_name,
            index=self.settings.history_index_name,
            clock=self.clock,
        )

    def blob_store(self) -> BlobStore:
        return BlobStore(
            self.storage,
            self.settings.store_table_name,
            clock=self.clock,
            new_id=self.new_id,
        )


_context: ServiceContext | None = None


def build_context(config: Settings = settings) -> ServiceContext:
    """Production wiring: DynamoDB and a shared async HTTP client."""
    return ServiceContext(
        settings=config,
        storage=DynamoDBStore(region_name=config.aws_region),
        http=httpx.AsyncClient(timeout=config.http_timeout, follow_redirects=True),
    )


def get_context() -> ServiceContext:
    """Return the process-wide context, creating it on first call."""
    global _context
    if _context is None:
        _context = build_context()
        logger.info("Service context initialized (environment=%s)", settings.environment)
    return _context


def set_context(context: ServiceContext | None) -> None:
    global _context
    _context = context
