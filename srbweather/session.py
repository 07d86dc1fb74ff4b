"""User-facing session: ties location changes to the forecast orchestrator."""

from srbweather.geo.locator import (
    GeoFailure,
    GeolocationCapability,
    Geolocator,
    PositionOptions,
)
from srbweather.geo.resolver import GeoErrorKind, nearest_city
from srbweather.i18n import message, normalize_language
from srbweather.logging_config import logger
from srbweather.maps.view import MapView
from srbweather.models.city import DEFAULT_CITY, City, find_city
from srbweather.redis_cache.store import GEO_DENIED, GEO_GRANTED, SessionStore
from srbweather.weather_service.client import CityNotFoundError, OpenMeteoClient
from srbweather.weather_service.orchestrator import ForecastOrchestrator

GEO_OPTIONS = PositionOptions(high_accuracy=True, timeout_s=10.0, max_age_s=600.0)


class WeatherSession:
    """A single user's view of the service."""

    def __init__(
        self,
        client: OpenMeteoClient,
        store: SessionStore,
        map_view: MapView | None = None,
        capability: GeolocationCapability | None = None,
    ):
        self.store = store
        self.map_view = map_view or MapView()
        self.capability = capability
        self.lang = normalize_language(store.get_lang())
        self.saved_city = store.get_city()
        self.geo_error: str | None = None
        self.orchestrator = ForecastOrchestrator(
            client, store, self.saved_city or DEFAULT_CITY, lang=self.lang
        )

    @property
    def city(self) -> City:
        return self.orchestrator.state.city

    async def bootstrap(self):
        """Start on the stored city, or try geolocation unless it was denied before."""
        self.orchestrator.select_city(self.city)
        if self.saved_city is not None:
            logger.info("SESSION_RESUMED", city=self.saved_city.name)
            return
        if self.capability is None:
            return
        if self.store.get_geo_status() == GEO_DENIED:
            logger.info("SESSION_GEOLOCATION_SKIPPED")
            return
        await self.use_my_location(self.capability)

    def select_city_by_name(self, name: str) -> City:
        """Select one of the candidate cities.

        Raises:
            CityNotFoundError: If ``name`` is not a candidate city.
        """
        city = find_city(name)
        if city is None:
            raise CityNotFoundError(f"City not found: {name}")
        self.orchestrator.select_city(city)
        return city

    async def use_my_location(
        self, capability: GeolocationCapability
    ) -> City | GeoFailure:
        """Locate the user and select a city at their position.

        Returns:
            The new City, or the GeoFailure describing why locating failed.
        """
        result = await Geolocator(capability).locate(GEO_OPTIONS)
        if isinstance(result, GeoFailure):
            self.geo_error = message(self.lang, f"geo_{result.kind.value}")
            if result.kind is GeoErrorKind.denied:
                self.store.save_geo_status(GEO_DENIED)
            return result

        position = result.position
        nearest = nearest_city(position.lat, position.lon).nearest
        label = message(self.lang, "my_location")
        city = City(
            name=f"{label} • {nearest.name}",
            display_name=label,
            lat=position.lat,
            lon=position.lon,
        )
        self.geo_error = None
        self.store.save_geo_status(GEO_GRANTED)
        self.orchestrator.select_city(city)
        return city

    def pick_on_map(self, lat: float, lon: float) -> City:
        """Select the clicked map position as a custom city."""
        city = self.map_view.handle_click(lat, lon, self.lang)
        self.orchestrator.select_city(city)
        return city

    def set_lang(self, lang: str) -> str:
        self.lang = normalize_language(lang)
        self.store.save_lang(self.lang)
        self.orchestrator.lang = self.lang
        self.orchestrator.refresh_alerts()
        return self.lang
