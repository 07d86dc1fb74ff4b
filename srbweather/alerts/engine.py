"""Rule engine deriving alerts from the daily forecast."""

import math
from collections.abc import Callable, Sequence

from srbweather.i18n import message
from srbweather.models.alert import Alert, AlertLevel
from srbweather.models.forecast import DailyPoint

ALERT_WINDOW_DAYS = 3

RAIN_THRESHOLD_MM = 15
WIND_THRESHOLD_KMH = 60
HEAT_THRESHOLD_C = 35
FROST_THRESHOLD_C = 0
THUNDERSTORM_CODE = 95


def _at_least(value, threshold) -> bool:
    return value is not None and value >= threshold


def _rain(day: DailyPoint, lang: str) -> Alert | None:
    if _at_least(day.precipitation_mm, RAIN_THRESHOLD_MM):
        return Alert(
            level=AlertLevel.warn,
            message=message(lang, "alert_rain", mm=math.floor(day.precipitation_mm + 0.5)),
        )
    return None


def _wind(day: DailyPoint, lang: str) -> Alert | None:
    if _at_least(day.wind_max_kmh, WIND_THRESHOLD_KMH):
        return Alert(level=AlertLevel.warn, message=message(lang, "alert_wind"))
    return None


def _heat(day: DailyPoint, lang: str) -> Alert | None:
    if _at_least(day.max, HEAT_THRESHOLD_C):
        return Alert(level=AlertLevel.danger, message=message(lang, "alert_heat"))
    return None


def _frost(day: DailyPoint, lang: str) -> Alert | None:
    # A missing minimum is unknown, not frost.
    if day.min is not None and day.min <= FROST_THRESHOLD_C:
        return Alert(level=AlertLevel.info, message=message(lang, "alert_frost"))
    return None


def _thunderstorm(day: DailyPoint, lang: str) -> Alert | None:
    if day.weather_code == THUNDERSTORM_CODE:
        return Alert(level=AlertLevel.warn, message=message(lang, "alert_thunder"))
    return None


# Evaluation order within a day is also the output order.
RULES: tuple[Callable[[DailyPoint, str], Alert | None], ...] = (
    _rain,
    _wind,
    _heat,
    _frost,
    _thunderstorm,
)


def derive_alerts(daily: Sequence[DailyPoint], lang: str = "en") -> list[Alert]:
    """Derive alerts for today and the next two days.

    Every rule is evaluated independently for each day, so a single day can
    produce several alerts. Output is ordered day by day, then by rule.

    Args:
        daily: Daily forecast rows, today first.
        lang: Language of the alert messages.

    Returns:
        The alerts in order; empty when nothing matches.
    """
    alerts = []
    for day in daily[:ALERT_WINDOW_DAYS]:
        for rule in RULES:
            if alert := rule(day, lang):
                alerts.append(alert)
    return alerts
