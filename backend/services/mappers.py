"""Merge a SWAPI planet and an OpenWeatherMap payload into one history record."""

from services.constants import (
    CLOUD_COVERAGE_UNIT,
    HUMIDITY_UNIT,
    PRESSURE_UNIT,
    TEMPERATURE_UNIT,
    VISIBILITY_UNIT,
    WIND_SPEED_UNIT,
)


def _measurement(value, unit: str) -> dict:
    return {"value": value, "unit": unit}


def to_planet_weather(planet_id: int, planet: dict, weather: dict) -> dict:
    main = weather["main"]
    return {
        "planetId": planet_id,
        "planetName": planet["name"],
        "climate": planet["climate"],
        "terrain": planet["terrain"],
        "population": planet["population"],
        "weather": {
            "description": weather["weather"][0]["description"],
            "temperature": _measurement(main["temp"], TEMPERATURE_UNIT),
            "feelsLike": _measurement(main["feels_like"], TEMPERATURE_UNIT),
            "humidity": _measurement(main["humidity"], HUMIDITY_UNIT),
            "windSpeed": _measurement(weather["wind"]["speed"], WIND_SPEED_UNIT),
            "pressure": _measurement(main["pressure"], PRESSURE_UNIT),
            "visibility": _measurement(weather["visibility"], VISIBILITY_UNIT),
            "cloudCoverage": _measurement(weather["clouds"]["all"], CLOUD_COVERAGE_UNIT),
        },
    }
