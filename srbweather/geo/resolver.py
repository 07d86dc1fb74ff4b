"""Nearest-city lookup and geolocation error classification."""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from srbweather.models.city import CANDIDATE_CITIES, City

EARTH_RADIUS_KM = 6371

PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class GeoErrorKind(str, Enum):
    """Reason a geolocation request failed."""

    denied = "denied"
    unavailable = "unavailable"
    timeout = "timeout"
    insecure_context = "insecure_context"
    unsupported = "unsupported"


@dataclass(frozen=True)
class GeoContext:
    """Ambient facts about the client that affect geolocation."""

    is_secure_context: bool = True
    has_geolocation: bool = True


@dataclass(frozen=True)
class NearestCity:
    nearest: City
    distance_km: float


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres between two points in degrees."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1))
        * math.cos(math.radians(lat2))
        * math.sin(d_lon / 2) ** 2
    )
    # Rounding can push a just past 1 near antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(a)))


def nearest_city(
    lat: float, lon: float, cities: Sequence[City] = CANDIDATE_CITIES
) -> NearestCity:
    """Return the candidate city closest to the given position.

    Exact ties go to the city declared first in ``cities``. This is a
    property of the list order, not of the geometry.

    Args:
        lat: Latitude in decimal degrees.
        lon: Longitude in decimal degrees.
        cities: Candidate cities to search, in priority order.

    Returns:
        The nearest city and its distance in kilometres.
    """
    best = cities[0]
    best_km = math.inf
    for city in cities:
        km = haversine_km(lat, lon, city.lat, city.lon)
        if km < best_km:
            best, best_km = city, km
    return NearestCity(nearest=best, distance_km=best_km)


def classify_geo_error(code: int | None, context: GeoContext) -> GeoErrorKind:
    """Map a geolocation failure to a GeoErrorKind.

    Args:
        code: Platform error code (1 denied, 2 unavailable, 3 timeout), if any.
        context: Whether the client is a secure context with geolocation.

    Returns:
        The failure kind. Uncoded failures are explained by the context
        when possible and default to ``unavailable``.
    """
    if code == PERMISSION_DENIED:
        return GeoErrorKind.denied
    if code == POSITION_UNAVAILABLE:
        return GeoErrorKind.unavailable
    if code == TIMEOUT:
        return GeoErrorKind.timeout
    if not context.is_secure_context:
        return GeoErrorKind.insecure_context
    if not context.has_geolocation:
        return GeoErrorKind.unsupported
    return GeoErrorKind.unavailable
