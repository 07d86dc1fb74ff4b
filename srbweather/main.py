"""FastAPI application routes, middleware, and metrics."""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from structlog.contextvars import bind_contextvars, clear_contextvars

from srbweather.geo.locator import GeoFailure, Position, ReportedGeolocation
from srbweather.geo.resolver import nearest_city
from srbweather.health.health_check import (
    is_air_quality_api_available,
    is_forecast_api_available,
    is_redis_available,
)
from srbweather.i18n import message
from srbweather.lifecycle import Lifecycle
from srbweather.logging_config import logger
from srbweather.maps.view import MapNotInteractiveError, MapView, probe_map_library
from srbweather.models.city import City, search_cities
from srbweather.models.forecast import hourly_range
from srbweather.models.health import Dependencies, HealthResponse
from srbweather.models.views import (
    AirQualityDisplay,
    CitySelection,
    DailyRow,
    ForecastView,
    GeolocationReport,
    LanguageChoice,
    LocationResponse,
    MapClick,
    NearestResponse,
)
from srbweather.redis_cache.store import session_store
from srbweather.session import WeatherSession
from srbweather.weather_service.client import (
    CityNotFoundError,
    OpenMeteoClient,
    WeatherServiceError,
)

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "path", "status_code"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "HTTP request duration in seconds", ["path"]
)


def create_session() -> WeatherSession:
    """Build the session with the production client, store and map view."""
    return WeatherSession(OpenMeteoClient(), session_store(), MapView())


@asynccontextmanager
async def lifespan(app: FastAPI):
    session = create_session()
    app.state.session = session
    app.state.lifecycle = Lifecycle()
    await asyncio.gather(
        session.map_view.mount(probe_map_library()),
        app.state.lifecycle.ensure_initialized(session),
    )
    try:
        yield
    finally:
        session.orchestrator.cancel()
        await session.orchestrator.client.aclose()


app = FastAPI(lifespan=lifespan)


def get_session(request: Request) -> WeatherSession:
    return request.app.state.session


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Log request details, attach a request ID, and record metrics.

    Args:
        request: Incoming HTTP request.
        call_next: FastAPI handler for the next middleware/app.

    Returns:
        The response produced by the downstream handler.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    bind_contextvars(request_id=request_id)
    start = time.perf_counter()
    response = None
    try:
        response = await call_next(request)
        response.headers["x-request-id"] = request_id
        return response
    finally:
        duration_s = time.perf_counter() - start
        duration_ms = round(duration_s * 1000, 2)
        status_code = getattr(response, "status_code", 500)
        logger.info(
            "HTTP_REQUEST",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=duration_ms,
        )
        REQUEST_COUNT.labels(
            method=request.method, path=request.url.path, status_code=status_code
        ).inc()
        REQUEST_LATENCY.labels(path=request.url.path).observe(duration_s)
        clear_contextvars()


@app.exception_handler(CityNotFoundError)
async def city_not_found_handler(request: Request, exc: CityNotFoundError):
    """Convert unknown city names into 404 responses."""
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(MapNotInteractiveError)
async def map_not_interactive_handler(request: Request, exc: MapNotInteractiveError):
    """Reject map clicks while the interactive map is not in use."""
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(WeatherServiceError)
async def weather_service_error_handler(request: Request, exc: WeatherServiceError):
    """Convert unexpected weather service errors into 500 responses."""
    return JSONResponse(status_code=500, content={"detail": "Unexpected error"})


def build_forecast_view(session: WeatherSession) -> ForecastView:
    """Project the session state into the forecast page payload."""
    state = session.orchestrator.state
    forecast = state.forecast
    hourly = forecast.hourly if forecast else []
    daily = forecast.daily if forecast else []
    placeholder = message(session.lang, "placeholder")
    air = state.air_quality
    return ForecastView(
        city=state.city,
        lang=session.lang,
        loading=state.loading,
        error=(
            f"{message(session.lang, 'forecast_error')} ({state.error})"
            if state.error
            else None
        ),
        geo_error=session.geo_error,
        current=forecast.current if forecast else None,
        hourly=hourly,
        daily=[
            DailyRow(
                date=day.date,
                max=day.max,
                min=day.min,
                precipitation_mm=day.precipitation_mm,
                weather_code=day.weather_code,
                wind_max_kmh=day.wind_max_kmh,
                description=day.description,
                icon=day.icon,
            )
            for day in daily
        ],
        temperature_range=hourly_range(hourly),
        air_quality=air,
        air_quality_display=AirQualityDisplay(
            pm25=placeholder if air is None or air.pm25 is None else str(air.pm25),
            pm10=placeholder if air is None or air.pm10 is None else str(air.pm10),
        ),
        alerts=state.alerts,
        alerts_empty_message=(
            message(session.lang, "no_alerts")
            if forecast is not None and not state.alerts
            else None
        ),
    )


@app.get("/")
async def root():
    """Return a basic liveness response."""
    return {"message": "Hello World"}


@app.get("/cities")
async def list_cities(q: str = "") -> list[City]:
    """List the supported cities matching an optional search string."""
    return search_cities(q)


@app.get("/nearest")
async def get_nearest(lat: float, lon: float) -> NearestResponse:
    """Return the supported city closest to a position."""
    result = nearest_city(lat, lon)
    return NearestResponse(nearest=result.nearest, distance_km=result.distance_km)


@app.post("/location/city")
async def select_city(
    selection: CitySelection, session: WeatherSession = Depends(get_session)
) -> LocationResponse:
    """Select one of the supported cities by name."""
    return LocationResponse(city=session.select_city_by_name(selection.name))


@app.post("/location/geolocate")
async def geolocate(
    report: GeolocationReport, session: WeatherSession = Depends(get_session)
) -> LocationResponse:
    """Select the city at the position reported by the client's geolocation."""
    position = None
    if report.latitude is not None and report.longitude is not None:
        position = Position(
            lat=report.latitude, lon=report.longitude, accuracy_m=report.accuracy_m
        )
    capability = ReportedGeolocation(
        position,
        report.error_code,
        is_secure_context=report.is_secure_context,
        supported=report.has_geolocation,
        permission=report.permission,
    )
    result = await session.use_my_location(capability)
    if isinstance(result, GeoFailure):
        return LocationResponse(error_kind=result.kind.value, error=session.geo_error)
    return LocationResponse(city=result)


@app.get("/forecast")
async def get_forecast(
    wait: bool = False, session: WeatherSession = Depends(get_session)
) -> ForecastView:
    """Return the forecast state, optionally after the active fetch settles."""
    if wait:
        await session.orchestrator.wait()
    return build_forecast_view(session)


@app.get("/map")
async def get_map(session: WeatherSession = Depends(get_session)):
    """Render the map for the selected city in whichever mode the view settled on."""
    view = session.map_view
    return {
        "state": view.state.value,
        "city": session.city,
        "map": view.render(session.city),
    }


@app.post("/map/click")
async def click_map(
    click: MapClick, session: WeatherSession = Depends(get_session)
) -> LocationResponse:
    """Select the clicked position on the interactive map."""
    return LocationResponse(city=session.pick_on_map(click.lat, click.lon))


@app.get("/lang")
async def get_lang(session: WeatherSession = Depends(get_session)) -> LanguageChoice:
    return LanguageChoice(lang=session.lang)


@app.put("/lang")
async def put_lang(
    choice: LanguageChoice, session: WeatherSession = Depends(get_session)
) -> LanguageChoice:
    return LanguageChoice(lang=session.set_lang(choice.lang))


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Report API health and dependency availability.

    Returns:
        A HealthResponse containing dependency status.
    """
    forecast_api, air_quality_api = await asyncio.gather(
        is_forecast_api_available(), is_air_quality_api_available()
    )
    return HealthResponse(
        status="ok",
        dependencies=Dependencies(
            forecast_api=forecast_api,
            air_quality_api=air_quality_api,
            redis=is_redis_available(),
        ),
    )


@app.get("/metrics")
async def metrics():
    """Expose Prometheus metrics for scraping."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
