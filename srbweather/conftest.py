"""Shared test fixtures."""

import fakeredis
import httpx
import pytest

from srbweather.redis_cache.store import SessionStore
from srbweather.weather_service.client import OpenMeteoClient


def forecast_payload(daily_max=(12.0, 14.5, 9.0)) -> dict:
    days = len(daily_max)
    return {
        "current": {
            "temperature_2m": 10.4,
            "apparent_temperature": 8.9,
            "relative_humidity_2m": 71,
            "wind_speed_10m": 12.2,
            "surface_pressure": 1003.6,
            "is_day": 1,
        },
        "hourly": {
            "time": ["2025-01-15T00:00", "2025-01-15T01:00", "2025-01-15T02:00"],
            "temperature_2m": [4.0, 3.5, 3.1],
        },
        "daily": {
            "time": [f"2025-01-{15 + i}" for i in range(days)],
            "temperature_2m_max": list(daily_max),
            "temperature_2m_min": [2.0] * days,
            "precipitation_sum": [0.0] * days,
            "weathercode": [3] * days,
            "wind_speed_10m_max": [20.0] * days,
        },
    }


AIR_QUALITY_PAYLOAD = {
    "hourly": {
        "time": ["2025-01-15T00:00", "2025-01-15T01:00", "2025-01-15T02:00"],
        "pm10": [30.1, 28.4, 25.0],
        "pm2_5": [18.2, 17.0, 15.3],
    }
}


@pytest.fixture
def fake_redis():
    client = fakeredis.FakeRedis(decode_responses=True)
    client.flushall()
    return client


@pytest.fixture
def store(fake_redis):
    return SessionStore(fake_redis)


@pytest.fixture
def make_client():
    """Build an OpenMeteoClient whose requests are answered by ``handler``."""

    def factory(handler) -> OpenMeteoClient:
        return OpenMeteoClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))

    return factory


@pytest.fixture
def open_meteo_handler():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.open-meteo.com":
            return httpx.Response(200, json=forecast_payload())
        if request.url.host == "air-quality-api.open-meteo.com":
            return httpx.Response(200, json=AIR_QUALITY_PAYLOAD)
        raise AssertionError(f"Unexpected URL: {request.url}")

    return handler


@pytest.fixture
def make_forecast_payload():
    return forecast_payload


@pytest.fixture
def air_quality_payload():
    return AIR_QUALITY_PAYLOAD
