"""SWAPI client for planet lookups.

Cache first, then a single request. No retries: a failed planet fetch fails
the whole combine request.
"""

import logging
import random

import httpx

from errors import UpstreamError
from services.cache import TTLCache
from services.constants import PLANETS_COUNT

logger = logging.getLogger(__name__)


def random_planet_id(rng: random.Random | None = None) -> int:
    """Pick a planet id uniformly from 1..PLANETS_COUNT."""
    return (rng or random).randint(1, PLANETS_COUNT)


class PlanetService:
    def __init__(self, cache: TTLCache, http: httpx.AsyncClient, base_url: str):
        self._cache = cache
        self._http = http
        self._base_url = base_url.rstrip("/")

    async def get_planet(self, planet_id: int) -> dict:
        """Return the SWAPI planet payload for planet_id."""
        try:
            cached = await self._cache.get("planet", planet_id)
            if cached is not None:
                logger.debug("Using cached planet data for planet %s", planet_id)
                return cached

            logger.info("Fetching planet %s from SWAPI", planet_id)
            resp = await self._http.get(f"{self._base_url}/planets/{planet_id}/")

            if not resp.is_success:
                logger.error(
                    "SWAPI request failed for planet %s: %s %s",
                    planet_id, resp.status_code, resp.reason_phrase,
                )
                raise UpstreamError(
                    f"Failed to fetch planet data: {resp.status_code} {resp.reason_phrase}",
                    status=resp.status_code,
                )

            data = resp.json()
            await self._cache.set("planet", planet_id, data)
            logger.info("Planet %s fetched and cached", planet_id)
            return data
        except Exception as e:
            logger.error("Error fetching planet %s: %s", planet_id, e)
            raise
