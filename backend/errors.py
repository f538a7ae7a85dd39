"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal server error"


class PlanetWeatherError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class InvalidRequestError(PlanetWeatherError):
    """Malformed body, query parameter or pagination cursor."""

    def __init__(self, message: str, details: list[dict] | None = None):
        super().__init__(message, status_code=400)
        self.details = details


class UpstreamError(PlanetWeatherError):
    """Network failure or non-success status from SWAPI or OpenWeatherMap."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message, status_code=500)
        self.status = status


class UpstreamNotFoundError(UpstreamError):
    def __init__(self, message: str):
        super().__init__(message, status=404)


class RetryExhaustedError(UpstreamError):
    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class StorageError(PlanetWeatherError):
    """Key-value backend failure. The message never carries backend detail."""


class CacheError(StorageError):
    pass


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(InvalidRequestError)
    async def handle_invalid_request(_request: Request, exc: InvalidRequestError):
        body = {"error": str(exc)}
        if exc.details:
            body["details"] = exc.details
        return JSONResponse(body, status_code=400)

    @app.exception_handler(PlanetWeatherError)
    async def handle_planet_weather_error(_request: Request, exc: PlanetWeatherError):
        logger.error("Request failed: %s", exc)
        return JSONResponse({"error": INTERNAL_ERROR}, status_code=500)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse({"error": INTERNAL_ERROR}, status_code=500)
