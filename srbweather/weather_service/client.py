"""Open-Meteo forecast and air-quality client."""

import os
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

from srbweather.logging_config import logger
from srbweather.models.city import City
from srbweather.models.forecast import AirQualitySnapshot, ForecastSnapshot

FORECAST_URL = os.getenv("FORECAST_URL", "https://api.open-meteo.com/v1/forecast")
AIR_QUALITY_URL = os.getenv(
    "AIR_QUALITY_URL", "https://air-quality-api.open-meteo.com/v1/air-quality"
)
WEATHER_TIMEZONE = os.getenv("WEATHER_TIMEZONE", "Europe/Belgrade")
HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "10"))

CURRENT_FIELDS = [
    "temperature_2m",
    "apparent_temperature",
    "relative_humidity_2m",
    "wind_speed_10m",
    "surface_pressure",
    "is_day",
]
HOURLY_FIELDS = ["temperature_2m"]
DAILY_FIELDS = [
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "weathercode",
    "wind_speed_10m_max",
]
AIR_QUALITY_FIELDS = ["pm10", "pm2_5"]


class WeatherServiceError(Exception):
    """Base exception for weather service failures."""
    pass


class CityNotFoundError(WeatherServiceError):
    """Raised when a city name is not one of the supported cities."""
    pass


class NetworkError(WeatherServiceError):
    """Raised when the forecast request fails or returns a bad payload."""

    def __init__(self, message: str, city: City | None = None):
        super().__init__(message)
        self.city = city


def forecast_params(city: City) -> dict:
    return {
        "latitude": city.lat,
        "longitude": city.lon,
        "current": ",".join(CURRENT_FIELDS),
        "hourly": ",".join(HOURLY_FIELDS),
        "daily": ",".join(DAILY_FIELDS),
        "timezone": WEATHER_TIMEZONE,
    }


def air_quality_params(city: City) -> dict:
    return {
        "latitude": city.lat,
        "longitude": city.lon,
        "hourly": ",".join(AIR_QUALITY_FIELDS),
        "timezone": WEATHER_TIMEZONE,
    }


def local_now() -> datetime:
    """Current wall-clock time in the forecast timezone, without tzinfo."""
    return datetime.now(ZoneInfo(WEATHER_TIMEZONE)).replace(tzinfo=None)


class OpenMeteoClient:
    """Fetches forecasts and air quality for a City over one shared connection pool."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self.http = client or httpx.AsyncClient(timeout=HTTP_TIMEOUT_S)

    async def aclose(self):
        await self.http.aclose()

    async def fetch_forecast(self, city: City) -> ForecastSnapshot:
        """Fetch the forecast for a city.

        Args:
            city: City model containing coordinates.

        Returns:
            The parsed forecast.

        Raises:
            NetworkError: On transport errors, non-success status or a
                payload that does not parse.
        """
        try:
            response = await self.http.get(FORECAST_URL, params=forecast_params(city))
            logger.info(
                "FORECAST_RESPONSE", city=city.name, status=response.status_code
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "FORECAST_BAD_STATUS",
                city=city.name,
                status=exc.response.status_code,
            )
            raise NetworkError("Network error", city) from exc
        except httpx.RequestError as exc:
            logger.error("FORECAST_REQUEST_FAILED", city=city.name, error=str(exc))
            raise NetworkError(str(exc) or "Network error", city) from exc

        try:
            return ForecastSnapshot.from_api_response(response.json())
        except (TypeError, KeyError, ValueError) as exc:
            logger.error("FORECAST_BAD_PAYLOAD", city=city.name, error=str(exc))
            raise NetworkError("Malformed forecast payload", city) from exc

    async def fetch_air_quality(self, city: City) -> AirQualitySnapshot | None:
        """Fetch air quality for a city.

        Returns:
            The current snapshot, or None on any failure.
        """
        try:
            response = await self.http.get(
                AIR_QUALITY_URL, params=air_quality_params(city)
            )
            if not response.is_success:
                logger.info(
                    "AIR_QUALITY_BAD_STATUS",
                    city=city.name,
                    status=response.status_code,
                )
                return None
            return AirQualitySnapshot.from_api_response(response.json(), local_now())
        except Exception as exc:
            logger.info("AIR_QUALITY_UNAVAILABLE", city=city.name, error=str(exc))
            return None
