"""Forecast fetch cycles: one active cycle per selected city, stale results dropped."""

import asyncio
from dataclasses import dataclass, field

from prometheus_client import Counter

from srbweather.alerts.engine import derive_alerts
from srbweather.logging_config import logger
from srbweather.models.alert import Alert
from srbweather.models.city import City
from srbweather.models.forecast import AirQualitySnapshot, ForecastSnapshot
from srbweather.redis_cache.store import SessionStore
from srbweather.weather_service.client import NetworkError, OpenMeteoClient

FORECAST_CYCLES = Counter(
    "forecast_cycles_total", "Forecast fetch cycles by outcome", ["outcome"]
)


class CycleCancelled(Exception):
    """Raised inside a cycle whose city has been superseded."""
    pass


class CancellationToken:
    """Invalidation marker for the fetch cycle of one City."""

    def __init__(self, city: City):
        self.city = city
        self._cancelled = False

    def cancel(self):
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


@dataclass(frozen=True)
class ForecastResult:
    forecast: ForecastSnapshot
    air_quality: AirQualitySnapshot | None


@dataclass
class ForecastState:
    """What the presentation layer sees for the currently selected city."""

    city: City
    forecast: ForecastSnapshot | None = None
    air_quality: AirQualitySnapshot | None = None
    alerts: list[Alert] = field(default_factory=list)
    loading: bool = False
    error: str | None = None


async def resolve_forecast(
    client: OpenMeteoClient, city: City, token: CancellationToken
) -> ForecastResult:
    """Fetch forecast and air quality for a city concurrently.

    Only the forecast request decides success; air quality degrades to None.

    Raises:
        NetworkError: If the forecast request fails.
        CycleCancelled: If the token was cancelled while the requests ran.
    """
    forecast, air_quality = await asyncio.gather(
        client.fetch_forecast(city),
        client.fetch_air_quality(city),
    )
    if token.cancelled:
        raise CycleCancelled(city.name)
    return ForecastResult(forecast=forecast, air_quality=air_quality)


class ForecastOrchestrator:
    """Owns the forecast state and at most one in-flight fetch cycle."""

    def __init__(
        self,
        client: OpenMeteoClient,
        store: SessionStore,
        city: City,
        lang: str = "en",
    ):
        self.client = client
        self.store = store
        self.lang = lang
        self.state = ForecastState(city=city)
        self._token: CancellationToken | None = None
        self._task: asyncio.Task | None = None

    def select_city(self, city: City) -> asyncio.Task:
        """Make ``city`` the current location and start fetching its forecast.

        The city is persisted before anything is fetched. Any cycle still
        running for an earlier city is cancelled and can no longer commit.

        Args:
            city: The newly selected city.

        Returns:
            The task running the new cycle.
        """
        self.store.save_city(city)
        self.cancel()

        token = CancellationToken(city)
        self._token = token
        self.state = ForecastState(city=city, loading=True)
        logger.info("FORECAST_CYCLE_STARTED", city=city.name)
        self._task = asyncio.create_task(self._run(token))
        return self._task

    def cancel(self):
        """Invalidate the active cycle, if any."""
        if self._token is not None:
            self._token.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._token = None
        self._task = None

    async def wait(self):
        """Wait until no cycle is in flight, following newer selections."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def refresh_alerts(self):
        """Recompute alerts for the committed forecast, e.g. after a language change."""
        if self.state.forecast is not None:
            self.state.alerts = derive_alerts(self.state.forecast.daily, self.lang)

    def _is_current(self, token: CancellationToken) -> bool:
        return not token.cancelled and token is self._token

    async def _run(self, token: CancellationToken):
        city = token.city
        try:
            result = await resolve_forecast(self.client, city, token)
        except (CycleCancelled, asyncio.CancelledError):
            if self._is_current(token):
                raise
            logger.info("FORECAST_CYCLE_DISCARDED", city=city.name)
            FORECAST_CYCLES.labels(outcome="discarded").inc()
            return
        except NetworkError as exc:
            if not self._is_current(token):
                logger.info("FORECAST_CYCLE_DISCARDED", city=city.name)
                FORECAST_CYCLES.labels(outcome="discarded").inc()
                return
            logger.error("FORECAST_CYCLE_FAILED", city=city.name, error=str(exc))
            FORECAST_CYCLES.labels(outcome="failed").inc()
            self.state.loading = False
            self.state.error = str(exc)
            return

        if not self._is_current(token):
            logger.info("FORECAST_CYCLE_DISCARDED", city=city.name)
            FORECAST_CYCLES.labels(outcome="discarded").inc()
            return

        self.state.forecast = result.forecast
        self.state.air_quality = result.air_quality
        self.state.alerts = derive_alerts(result.forecast.daily, self.lang)
        self.state.loading = False
        logger.info(
            "FORECAST_CYCLE_COMMITTED",
            city=city.name,
            alerts=len(self.state.alerts),
            air_quality=result.air_quality is not None,
        )
        FORECAST_CYCLES.labels(outcome="committed").inc()
