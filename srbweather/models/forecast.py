"""Forecast and air-quality models plus weather code mapping helpers."""

from datetime import datetime

from pydantic import BaseModel

WEATHER_CODE_MAP = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    56: "Light freezing drizzle",
    57: "Dense freezing drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    66: "Light freezing rain",
    67: "Heavy freezing rain",
    71: "Slight snowfall",
    73: "Moderate snowfall",
    75: "Heavy snowfall",
    77: "Snow grains",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    85: "Slight snow showers",
    86: "Heavy snow showers",
    95: "Thunderstorm (no hail)",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}

WEATHER_ICON_MAP = {
    0: "☀️",
    1: "🌤️",
    2: "⛅",
    3: "☁️",
    45: "🌫️",
    48: "🌫️",
    51: "🌦️",
    61: "🌧️",
    63: "🌧️",
    65: "🌧️",
    71: "🌨️",
    80: "🌧️",
    95: "⛈️",
}
DEFAULT_WEATHER_ICON = "🌡️"


class CurrentConditions(BaseModel):
    """Conditions at the time of the request."""

    temp: float
    feels_like: float
    humidity_pct: float
    wind_speed_kmh: float
    pressure_hpa: float
    is_day: bool


class HourlyPoint(BaseModel):
    time: datetime
    temp: float | None


class DailyPoint(BaseModel):
    date: str
    max: float | None
    min: float | None
    precipitation_mm: float | None
    weather_code: int | None
    wind_max_kmh: float | None = None

    @property
    def description(self) -> str:
        return WEATHER_CODE_MAP.get(self.weather_code, "Unknown")

    @property
    def icon(self) -> str:
        return WEATHER_ICON_MAP.get(self.weather_code, DEFAULT_WEATHER_ICON)


def _aligned(series: dict, keys: list[str], optional: tuple[str, ...] = ()) -> int:
    """Return the shared length of parallel arrays, rejecting misaligned ones."""
    length = len(series["time"])
    for key in keys:
        if key in optional and key not in series:
            continue
        if len(series[key]) != length:
            raise ValueError(f"Misaligned series {key!r}: {len(series[key])} != {length}")
    return length


class ForecastSnapshot(BaseModel):
    """Forecast for one city: current conditions, hourly and daily series."""

    current: CurrentConditions
    hourly: list[HourlyPoint]
    daily: list[DailyPoint]

    @classmethod
    def from_api_response(cls, api_data: dict) -> "ForecastSnapshot":
        """Create a ForecastSnapshot from the Open-Meteo forecast payload.

        Args:
            api_data: Payload with ``current``, ``hourly`` and ``daily`` blocks.

        Returns:
            A populated ForecastSnapshot.

        Raises:
            KeyError: If a required block or field is missing.
            ValueError: If parallel arrays have different lengths.
        """
        current = api_data["current"]
        hourly = api_data["hourly"]
        daily = api_data["daily"]

        hourly_len = _aligned(hourly, ["temperature_2m"])
        daily_len = _aligned(
            daily,
            [
                "temperature_2m_max",
                "temperature_2m_min",
                "precipitation_sum",
                "weathercode",
                "wind_speed_10m_max",
            ],
            optional=("wind_speed_10m_max",),
        )
        wind_max = daily.get("wind_speed_10m_max") or [None] * daily_len

        return cls(
            current=CurrentConditions(
                temp=current["temperature_2m"],
                feels_like=current["apparent_temperature"],
                humidity_pct=current["relative_humidity_2m"],
                wind_speed_kmh=current["wind_speed_10m"],
                pressure_hpa=current["surface_pressure"],
                is_day=bool(current["is_day"]),
            ),
            hourly=[
                HourlyPoint(
                    time=datetime.fromisoformat(hourly["time"][i]),
                    temp=hourly["temperature_2m"][i],
                )
                for i in range(hourly_len)
            ],
            daily=[
                DailyPoint(
                    date=daily["time"][i],
                    max=daily["temperature_2m_max"][i],
                    min=daily["temperature_2m_min"][i],
                    precipitation_mm=daily["precipitation_sum"][i],
                    weather_code=daily["weathercode"][i],
                    wind_max_kmh=wind_max[i],
                )
                for i in range(daily_len)
            ],
        )


def hourly_range(hourly: list[HourlyPoint], hours: int = 24) -> tuple[float, float]:
    """Return the (min, max) temperature of the first ``hours`` points.

    A flat series is widened to ``(min, min + 1)`` so it can be scaled, and an
    empty one yields ``(0, 1)``.
    """
    temps = [p.temp for p in hourly[:hours] if p.temp is not None]
    if not temps:
        return 0.0, 1.0
    low, high = min(temps), max(temps)
    if high == low:
        high = low + 1
    return low, high


class AirQualitySnapshot(BaseModel):
    """Particulate readings sampled at the latest hour not in the future."""

    pm25: float | None
    pm10: float | None

    @classmethod
    def from_api_response(
        cls, api_data: dict, now: datetime
    ) -> "AirQualitySnapshot | None":
        """Create an AirQualitySnapshot from the air-quality payload.

        Args:
            api_data: Payload with an ``hourly`` block of ``time``/``pm10``/``pm2_5``.
            now: Current time, naive, in the timezone the payload was requested in.

        Returns:
            The snapshot, or None when the payload has no hourly time series.
        """
        hourly = (api_data or {}).get("hourly") or {}
        times = hourly.get("time")
        if not times:
            return None

        index = 0
        for i, raw_time in enumerate(times):
            if datetime.fromisoformat(raw_time) <= now:
                index = i
            else:
                break

        pm25 = hourly.get("pm2_5") or []
        pm10 = hourly.get("pm10") or []
        return cls(
            pm25=pm25[index] if index < len(pm25) else None,
            pm10=pm10[index] if index < len(pm10) else None,
        )
