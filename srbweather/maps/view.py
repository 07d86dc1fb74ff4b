"""Map view: interactive rendering when the map library loads, static tile otherwise."""

import asyncio
import os
from collections.abc import Awaitable
from enum import Enum

import httpx
from pydantic import BaseModel

from srbweather.geo.resolver import nearest_city
from srbweather.i18n import message
from srbweather.logging_config import logger
from srbweather.maps.tiles import (
    STATIC_ZOOM,
    lat_lon_to_tile,
    osm_viewer_url,
    static_tile_url,
)
from srbweather.models.city import City

MAP_LIBRARY_URL = os.getenv(
    "MAP_LIBRARY_URL", "https://unpkg.com/leaflet@1.9.4/dist/leaflet.js"
)
MAP_LOAD_TIMEOUT_S = float(os.getenv("MAP_LOAD_TIMEOUT_S", "5"))
TILE_LAYER_TEMPLATE = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
TILE_ATTRIBUTION = "© OpenStreetMap"
MARKER_GLYPH = "📍"


class MapState(str, Enum):
    loading = "loading"
    interactive = "interactive"
    static_fallback = "static_fallback"


class MapNotInteractiveError(Exception):
    """Raised when a click arrives while the interactive map is not in use."""
    pass


class InteractiveMap(BaseModel):
    mode: MapState = MapState.interactive
    center_lat: float
    center_lon: float
    zoom: int
    tile_layer: str
    attribution: str
    library_url: str


class StaticMap(BaseModel):
    mode: MapState = MapState.static_fallback
    tile_url: str
    tile_x: int
    tile_y: int
    zoom: int
    marker: str
    link_url: str


class InteractiveMapRenderer:
    """Hands the view over to the client-side map library."""

    def render(self, city: City) -> InteractiveMap:
        return InteractiveMap(
            center_lat=city.lat,
            center_lon=city.lon,
            zoom=STATIC_ZOOM,
            tile_layer=TILE_LAYER_TEMPLATE,
            attribution=TILE_ATTRIBUTION,
            library_url=MAP_LIBRARY_URL,
        )


class StaticMapRenderer:
    """Single OpenStreetMap tile with a marker, linked to the full viewer."""

    def render(self, city: City) -> StaticMap:
        tile = lat_lon_to_tile(city.lat, city.lon, STATIC_ZOOM)
        return StaticMap(
            tile_url=static_tile_url(city.lat, city.lon, STATIC_ZOOM),
            tile_x=tile.x,
            tile_y=tile.y,
            zoom=STATIC_ZOOM,
            marker=MARKER_GLYPH,
            link_url=osm_viewer_url(city.lat, city.lon, STATIC_ZOOM),
        )


class MapView:
    """One mounted map. Decides its renderer once and never revisits it."""

    def __init__(self):
        self.state = MapState.loading
        self.renderer: InteractiveMapRenderer | StaticMapRenderer | None = None

    async def mount(
        self,
        library_ready: Awaitable[bool],
        timeout_s: float = MAP_LOAD_TIMEOUT_S,
    ) -> MapState:
        """Race the library readiness signal against a timer.

        Args:
            library_ready: Resolves to True once the map library is usable.
            timeout_s: How long to wait before falling back to a static tile.

        Returns:
            The settled state. A view that already settled keeps its state.
        """
        if self.state is not MapState.loading:
            if asyncio.iscoroutine(library_ready):
                library_ready.close()
            return self.state

        try:
            ready = await asyncio.wait_for(library_ready, timeout=timeout_s)
        except asyncio.TimeoutError:
            logger.info("MAP_LIBRARY_TIMEOUT", timeout_s=timeout_s)
            ready = False
        except Exception as exc:
            logger.info("MAP_LIBRARY_LOAD_FAILED", error=str(exc))
            ready = False

        if ready:
            self.state = MapState.interactive
            self.renderer = InteractiveMapRenderer()
        else:
            self.state = MapState.static_fallback
            self.renderer = StaticMapRenderer()
        logger.info("MAP_MOUNTED", state=self.state.value)
        return self.state

    def render(self, city: City) -> InteractiveMap | StaticMap | None:
        """Render the map for a city, or None while still loading."""
        if self.renderer is None:
            return None
        return self.renderer.render(city)

    def handle_click(self, lat: float, lon: float, lang: str = "en") -> City:
        """Turn a click on the interactive map into a new City.

        Raises:
            MapNotInteractiveError: If the view is not in the interactive state.
        """
        if self.state is not MapState.interactive:
            raise MapNotInteractiveError(f"Map is {self.state.value}")
        nearest = nearest_city(lat, lon).nearest
        custom = message(lang, "custom_location")
        return City(
            name=f"{custom} • {nearest.name}", display_name=custom, lat=lat, lon=lon
        )


async def probe_map_library(
    url: str = MAP_LIBRARY_URL, client: httpx.AsyncClient | None = None
) -> bool:
    """Check that the map library script can be fetched.

    Returns:
        True on a successful response, False on any error.
    """
    try:
        if client is not None:
            response = await client.get(url)
        else:
            async with httpx.AsyncClient(timeout=MAP_LOAD_TIMEOUT_S) as http:
                response = await http.get(url)
    except httpx.HTTPError as exc:
        logger.info("MAP_LIBRARY_UNREACHABLE", url=url, error=str(exc))
        return False
    return response.is_success
