"""Redis-backed key-value store for the last selection and user preferences."""

import json
import os
from functools import partial

from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from srbweather.logging_config import logger
from srbweather.models.city import City

redis_client = Redis(
    host=os.getenv("REDIS_HOST", "redis"),
    port=int(os.getenv("REDIS_PORT", "6379")),
    db=int(os.getenv("REDIS_DB", "0")),
    decode_responses=True,
)

KEY_PREFIX = "srbwx"
LAST_CITY_KEY = f"{KEY_PREFIX}:lastCity"
GEO_STATUS_KEY = f"{KEY_PREFIX}:geoStatus"
LANG_KEY = f"{KEY_PREFIX}:lang"

GEO_GRANTED = "granted"
GEO_DENIED = "denied"


class SessionStore:
    """Best-effort store: failures are logged and never raised."""

    def __init__(self, client):
        self.redis_client: Redis = client

    def _set(self, key: str, value: str):
        try:
            self.redis_client.set(key, value)
        except RedisError as exc:
            logger.error("REDIS_SAVE_FAILED", key=key, error=str(exc))

    def _get(self, key: str) -> str | None:
        try:
            return self.redis_client.get(key)
        except RedisError as exc:
            logger.error("REDIS_GET_FAILED", key=key, error=str(exc))
            return None

    def save_city(self, city: City):
        """Persist the selected city.

        Args:
            city: City model to serialize.
        """
        self._set(LAST_CITY_KEY, city.model_dump_json())

    def get_city(self) -> City | None:
        """Get the last selected city.

        Returns:
            City model if a usable one is stored, otherwise None.
        """
        raw = self._get(LAST_CITY_KEY)
        if not raw:
            return None
        try:
            city = City(**json.loads(raw))
        except (ValueError, TypeError, ValidationError) as exc:
            logger.error("STORED_CITY_INVALID", error=str(exc))
            return None
        # Zero coordinates are treated as unset.
        if not city.lat or not city.lon:
            return None
        return city

    def save_geo_status(self, status: str):
        self._set(GEO_STATUS_KEY, status)

    def get_geo_status(self) -> str | None:
        return self._get(GEO_STATUS_KEY)

    def save_lang(self, lang: str):
        self._set(LANG_KEY, lang)

    def get_lang(self) -> str | None:
        return self._get(LANG_KEY)


session_store = partial(SessionStore, client=redis_client)
