"""Request and response payloads of the HTTP API."""

from pydantic import BaseModel, Field

from srbweather.models.alert import Alert
from srbweather.models.city import City
from srbweather.models.forecast import AirQualitySnapshot, CurrentConditions, HourlyPoint


class CitySelection(BaseModel):
    name: str


class MapClick(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class LanguageChoice(BaseModel):
    lang: str


class GeolocationReport(BaseModel):
    """What the client's geolocation attempt produced."""

    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    accuracy_m: float | None = None
    error_code: int | None = None
    is_secure_context: bool = True
    has_geolocation: bool = True
    permission: str | None = None


class NearestResponse(BaseModel):
    nearest: City
    distance_km: float


class LocationResponse(BaseModel):
    city: City | None = None
    error_kind: str | None = None
    error: str | None = None


class DailyRow(BaseModel):
    date: str
    max: float | None
    min: float | None
    precipitation_mm: float | None
    weather_code: int | None
    wind_max_kmh: float | None
    description: str
    icon: str


class AirQualityDisplay(BaseModel):
    pm25: str
    pm10: str


class ForecastView(BaseModel):
    """Everything needed to render the forecast page."""

    city: City
    lang: str
    loading: bool
    error: str | None
    geo_error: str | None
    current: CurrentConditions | None
    hourly: list[HourlyPoint]
    daily: list[DailyRow]
    temperature_range: tuple[float, float]
    air_quality: AirQualitySnapshot | None
    air_quality_display: AirQualityDisplay
    alerts: list[Alert]
    alerts_empty_message: str | None
