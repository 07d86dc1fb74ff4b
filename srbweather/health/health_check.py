"""Health checks for Redis and the external Open-Meteo APIs."""

import httpx

from srbweather.logging_config import logger
from srbweather.models.city import DEFAULT_CITY
from srbweather.models.health import ServiceStatus
from srbweather.redis_cache.store import redis_client
from srbweather.weather_service.client import AIR_QUALITY_URL, FORECAST_URL


def is_redis_available() -> ServiceStatus:
    """Check Redis connectivity.

    Returns:
        ServiceStatus.available when Redis responds, else not_available.
    """
    try:
        redis_client.ping()
        logger.info("REDIS CONNECTED")
        return ServiceStatus.available
    except Exception as exc:
        logger.error("REDIS UNAVAILABLE", error=str(exc))
        return ServiceStatus.not_available


async def _probe(url: str, params: dict, expected_key: str) -> ServiceStatus:
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.get(url, params=params)
            if response.status_code == 200 and expected_key in response.json():
                return ServiceStatus.available
    except Exception as exc:
        logger.error("UPSTREAM UNAVAILABLE", url=url, error=str(exc))
    return ServiceStatus.not_available


async def is_forecast_api_available() -> ServiceStatus:
    """Check the forecast API for availability."""
    return await _probe(
        FORECAST_URL,
        {
            "latitude": DEFAULT_CITY.lat,
            "longitude": DEFAULT_CITY.lon,
            "current": "temperature_2m",
        },
        "current",
    )


async def is_air_quality_api_available() -> ServiceStatus:
    """Check the air-quality API for availability."""
    return await _probe(
        AIR_QUALITY_URL,
        {"latitude": DEFAULT_CITY.lat, "longitude": DEFAULT_CITY.lon, "hourly": "pm10"},
        "hourly",
    )
