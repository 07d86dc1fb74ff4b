"""One-shot geolocation wrapped as an awaitable with an explicit result."""

import asyncio
from dataclasses import dataclass
from typing import Protocol

from srbweather.geo.resolver import (
    GeoContext,
    GeoErrorKind,
    classify_geo_error,
)
from srbweather.logging_config import logger


@dataclass(frozen=True)
class PositionOptions:
    high_accuracy: bool = True
    timeout_s: float = 10.0
    max_age_s: float = 600.0


@dataclass(frozen=True)
class Position:
    lat: float
    lon: float
    accuracy_m: float | None = None


@dataclass(frozen=True)
class PositionFix:
    """Successful geolocation."""

    position: Position


@dataclass(frozen=True)
class GeoFailure:
    """Failed geolocation with its classified reason."""

    kind: GeoErrorKind


LocateResult = PositionFix | GeoFailure


class PositionUnavailable(Exception):
    """Raised by a capability when the platform reports a coded failure."""

    def __init__(self, code: int | None = None, message: str = ""):
        super().__init__(message or f"Geolocation failed with code {code}")
        self.code = code


class GeolocationCapability(Protocol):
    """Platform geolocation as seen by the core."""

    is_secure_context: bool
    supported: bool

    async def permission_state(self) -> str | None:
        """Return ``granted``, ``denied``, ``prompt`` or None when unknown."""
        ...

    async def current_position(self, options: PositionOptions) -> Position:
        ...


class ReportedGeolocation:
    """Capability backed by what a client reported over the API."""

    def __init__(
        self,
        position: Position | None = None,
        error_code: int | None = None,
        *,
        is_secure_context: bool = True,
        supported: bool = True,
        permission: str | None = None,
    ):
        self.position = position
        self.error_code = error_code
        self.is_secure_context = is_secure_context
        self.supported = supported
        self.permission = permission

    async def permission_state(self) -> str | None:
        return self.permission

    async def current_position(self, options: PositionOptions) -> Position:
        if self.position is None:
            raise PositionUnavailable(self.error_code)
        return self.position


class Geolocator:
    """Runs the permission probe and position request for one capability."""

    def __init__(self, capability: GeolocationCapability):
        self.capability = capability

    @property
    def context(self) -> GeoContext:
        return GeoContext(
            is_secure_context=self.capability.is_secure_context,
            has_geolocation=self.capability.supported,
        )

    async def locate(self, options: PositionOptions = PositionOptions()) -> LocateResult:
        """Request the current position once.

        Args:
            options: Accuracy, timeout and cached-position age limits.

        Returns:
            PositionFix on success, GeoFailure with the classified reason
            otherwise. Geolocation failures are never raised.
        """
        context = self.context
        if not context.is_secure_context or not context.has_geolocation:
            kind = classify_geo_error(None, context)
            logger.info("GEOLOCATION_NOT_AVAILABLE", kind=kind.value)
            return GeoFailure(kind)

        try:
            permission = await self.capability.permission_state()
        except Exception as exc:
            logger.info("GEOLOCATION_PERMISSION_PROBE_FAILED", error=str(exc))
            permission = None
        if permission == "denied":
            logger.info("GEOLOCATION_PERMISSION_DENIED")
            return GeoFailure(GeoErrorKind.denied)

        try:
            position = await asyncio.wait_for(
                self.capability.current_position(options), timeout=options.timeout_s
            )
        except asyncio.TimeoutError:
            logger.info("GEOLOCATION_TIMEOUT", timeout_s=options.timeout_s)
            return GeoFailure(GeoErrorKind.timeout)
        except PositionUnavailable as exc:
            kind = classify_geo_error(exc.code, context)
            logger.info("GEOLOCATION_FAILED", code=exc.code, kind=kind.value)
            return GeoFailure(kind)
        except Exception as exc:
            kind = classify_geo_error(None, context)
            logger.error("GEOLOCATION_ERROR", error=str(exc), kind=kind.value)
            return GeoFailure(kind)

        logger.info("GEOLOCATION_FIX", lat=position.lat, lon=position.lon)
        return PositionFix(position)
