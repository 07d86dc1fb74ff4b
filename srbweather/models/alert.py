"""Alert model produced by the alert rule engine."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class AlertLevel(str, Enum):
    """Severity of a derived alert."""

    info = "info"
    warn = "warn"
    danger = "danger"


class Alert(BaseModel):
    """A single human-relevant alert derived from a daily forecast."""

    model_config = ConfigDict(frozen=True)

    level: AlertLevel
    message: str
