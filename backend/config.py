"""Centralized configuration — all env vars in one place."""

import logging
import os
import sys


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO" if self.is_production else "DEBUG")

        # DynamoDB
        self.aws_region: str | None = os.getenv("AWS_REGION")
        self.cache_table_name: str | None = os.getenv("CACHE_TABLE_NAME")
        self.history_table_name: str | None = os.getenv("HISTORY_TABLE_NAME")
        self.store_table_name: str | None = os.getenv("STORE_TABLE_NAME")
        self.history_index_name: str = os.getenv("HISTORY_INDEX_NAME", "HistoryByTimestampIndex")

        # Upstream APIs
        self.swapi_base_url: str = os.getenv("SWAPI_BASE_URL", "https://swapi.dev/api")
        self.weather_base_url: str = os.getenv(
            "WEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"
        )
        self.weather_api_key: str | None = os.getenv("WEATHER_API_KEY")
        self.http_timeout: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

        # Weather retry policy
        self.weather_max_retries: int = max(0, int(os.getenv("WEATHER_MAX_RETRIES", "3")))
        self.weather_retry_not_found: bool = _env_bool("WEATHER_RETRY_NOT_FOUND", True)
        self.weather_repick_country: bool = _env_bool("WEATHER_REPICK_COUNTRY", True)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of missing required env vars."""
        required = ["CACHE_TABLE_NAME", "HISTORY_TABLE_NAME", "STORE_TABLE_NAME", "WEATHER_API_KEY"]
        return [var for var in required if not getattr(self, _attr_for(var))]


settings = Settings()


def _attr_for(env_var: str) -> str:
    """Map env var name to Settings attribute name."""
    mapping = {
        "CACHE_TABLE_NAME": "cache_table_name",
        "HISTORY_TABLE_NAME": "history_table_name",
        "STORE_TABLE_NAME": "store_table_name",
        "WEATHER_API_KEY": "weather_api_key",
    }
    return mapping.get(env_var, env_var.lower())


def configure_logging(config: Settings = settings) -> None:
    """Structured logging: JSON for production, human-readable for local."""
    if config.is_production:
        logging.basicConfig(
            level=config.log_level,
            format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
            stream=sys.stdout,
        )
    else:
        logging.basicConfig(level=config.log_level, format="%(levelname)s %(name)s: %(message)s")
