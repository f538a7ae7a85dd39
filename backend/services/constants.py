"""Fixed lookup data for the planet and weather services."""

# Number of planets exposed by SWAPI; ids are 1-based.
PLANETS_COUNT = 60

AVAILABLE_COUNTRIES = [
    "Argentina",
    "Australia",
    "Brazil",
    "Canada",
    "Chile",
    "China",
    "Egypt",
    "France",
    "Germany",
    "India",
    "Italy",
    "Japan",
    "Kenya",
    "Mexico",
    "Norway",
    "Peru",
    "Portugal",
    "Spain",
    "Sweden",
    "United Kingdom",
]

# Units for OpenWeatherMap responses requested with units=metric
TEMPERATURE_UNIT = "°C"
HUMIDITY_UNIT = "%"
WIND_SPEED_UNIT = "m/s"
PRESSURE_UNIT = "hPa"
VISIBILITY_UNIT = "m"
CLOUD_COVERAGE_UNIT = "%"
