"""Web-Mercator slippy-map tile math and static map URLs."""

import math
from dataclasses import dataclass

STATIC_ZOOM = 7
TILE_URL = "https://tile.openstreetmap.org/{z}/{x}/{y}.png"
VIEWER_URL = "https://www.openstreetmap.org/?mlat={lat}&mlon={lon}#map={z}/{lat}/{lon}"


@dataclass(frozen=True)
class Tile:
    x: int
    y: int


def lat_lon_to_tile(lat: float, lon: float, zoom: int) -> Tile:
    """Return the tile containing a point at the given zoom level.

    Only defined for latitudes strictly inside (-85.05, 85.05).
    """
    lat_rad = lat * math.pi / 180
    n = 2**zoom
    x = math.floor((lon + 180) / 360 * n)
    y = math.floor(
        (1 - math.log(math.tan(lat_rad) + 1 / math.cos(lat_rad)) / math.pi) / 2 * n
    )
    return Tile(x=x, y=y)


def static_tile_url(lat: float, lon: float, zoom: int = STATIC_ZOOM) -> str:
    tile = lat_lon_to_tile(lat, lon, zoom)
    return TILE_URL.format(z=zoom, x=tile.x, y=tile.y)


def osm_viewer_url(lat: float, lon: float, zoom: int = STATIC_ZOOM) -> str:
    return VIEWER_URL.format(lat=lat, lon=lon, z=zoom)
