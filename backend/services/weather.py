"""OpenWeatherMap client for current conditions in a random country.

Requires an API key. Each attempt picks a country, checks the cache and only
then goes to the network; the whole attempt runs under the retry policy.
"""

import logging
import random

import httpx

from errors import UpstreamError, UpstreamNotFoundError
from services.cache import TTLCache
from services.constants import AVAILABLE_COUNTRIES
from services.retry import RetryPolicy, fetch_with_retry

logger = logging.getLogger(__name__)


def random_country(rng: random.Random | None = None, countries: list[str] = AVAILABLE_COUNTRIES) -> str:
    return (rng or random).choice(countries)


class WeatherService:
    def __init__(
        self,
        cache: TTLCache,
        http: httpx.AsyncClient,
        base_url: str,
        api_key: str | None,
        policy: RetryPolicy | None = None,
        rng: random.Random | None = None,
        countries: list[str] = AVAILABLE_COUNTRIES,
        repick_country: bool = True,
    ):
        self._cache = cache
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._policy = policy or RetryPolicy()
        self._rng = rng or random.Random()
        self._countries = countries
        # Re-picking on every attempt means a retry may ask about a different country
        self._repick_country = repick_country

    async def get_weather(self) -> dict:
        """Return the OpenWeatherMap payload for a randomly chosen country."""
        first_pick = random_country(self._rng, self._countries)

        async def attempt(number: int) -> dict:
            country = first_pick
            if self._repick_country and number > 1:
                country = random_country(self._rng, self._countries)
            return await self._fetch_country(country, number)

        return await fetch_with_retry(attempt, self._policy, "weather data")

    async def _fetch_country(self, country: str, attempt: int) -> dict:
        cached = await self._cache.get("country", country)
        if cached is not None:
            logger.debug("Using cached weather data for %s", country)
            return cached

        logger.info("Fetching weather for %s (attempt=%d)", country, attempt)
        resp = await self._http.get(
            f"{self._base_url}/weather",
            params={"q": country, "appid": self._api_key, "units": "metric"},
        )

        if resp.status_code == 404:
            logger.error("Country not found: %s", country)
            raise UpstreamNotFoundError(f"Country {country} not found")

        if not resp.is_success:
            logger.error("Weather API request failed for %s: status %s", country, resp.status_code)
            raise UpstreamError(
                f"Weather API responded with status: {resp.status_code}",
                status=resp.status_code,
            )

        data = resp.json()
        await self._cache.set("country", country, data)
        logger.info("Weather data for %s fetched and cached", country)
        return data
