"""
Weather providers (OpenWeather).

Classes:
- WeatherProvider: the interface the recommender consumes.
- OpenWeatherProvider: current conditions for a city or US ZIP via the
  OpenWeather "current weather" endpoint.

Functions:
- safe_current_conditions(provider, location): best-effort lookup that
  returns None instead of raising.

Notes:
- Uses metric units from the API; callers convert to °F where needed.
- Requests are time-bounded (WEATHER_TIMEOUT_SECONDS) and responses are
  cached per location for WEATHER_CACHE_TTL_SECONDS.
- A failed lookup is a normal outcome. Providers raise WeatherUnavailable
  and the recommender falls back to the unadjusted schedule.
"""

from __future__ import annotations
import logging
import re
from datetime import datetime, timezone
from typing import Optional

import requests
from flask import current_app, has_app_context

from ..models import WeatherSnapshot
from ..utils.cache import LockedTTLCache, WEATHER_CACHE_MAX_ENTRIES, WEATHER_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)

OPENWEATHER_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
DEFAULT_TIMEOUT_SECONDS = 6

_US_STATE_LIKE = re.compile(r"^([^,]+),\s?([A-Za-z]{2})$")
_US_ZIP = re.compile(r"^\s*(\d{5})(?:-\d{4})?\s*$")

# OpenWeather "main" groups that mean water is falling
_WET_GROUPS = {"rain", "drizzle", "thunderstorm", "snow"}


class WeatherUnavailable(Exception):
    """Raised when current conditions cannot be obtained."""


class WeatherProvider:
    """Interface for current-conditions lookups."""

    def current_conditions(self, location: str | None = None) -> WeatherSnapshot:
        raise NotImplementedError


def _normalize_city_query(city: str) -> str:
    city = city.strip()
    m = _US_STATE_LIKE.match(city)
    if m:
        return f"{m.group(1).strip()}, {m.group(2).upper()}, US"
    return city


def _get_api_key() -> str | None:
    if has_app_context():
        return current_app.config.get("OPENWEATHER_API_KEY") or None
    return None


def _precipitation_mm(data: dict) -> float:
    """Sum of rain and snow volume reported for the last hour (or 3 hours)."""
    total = 0.0
    for key in ("rain", "snow"):
        block = data.get(key) or {}
        amount = block.get("1h", block.get("3h", 0.0))
        if isinstance(amount, (int, float)):
            total += float(amount)
    return round(total, 2)


def parse_current_weather(data: dict, location: str | None = None) -> WeatherSnapshot:
    """
    Convert an OpenWeather current-weather payload into a WeatherSnapshot.

    Raises:
        WeatherUnavailable: payload has no temperature
    """
    temp_c = (data.get("main") or {}).get("temp")
    if not isinstance(temp_c, (int, float)):
        raise WeatherUnavailable("response missing temperature")

    weather = (data.get("weather") or [{}])[0]
    group = (weather.get("main") or "").lower()
    precipitation = _precipitation_mm(data)
    observed = data.get("dt")

    return WeatherSnapshot(
        temperature_c=float(temp_c),
        humidity=(data.get("main") or {}).get("humidity"),
        precipitation_mm=precipitation,
        recent_precipitation=precipitation > 0 or group in _WET_GROUPS,
        conditions=weather.get("description", ""),
        location=data.get("name") or location,
        observed_at=datetime.fromtimestamp(observed, tz=timezone.utc) if isinstance(observed, (int, float)) else None,
    )


class OpenWeatherProvider(WeatherProvider):
    """
    OpenWeather-backed provider.

    Args:
        api_key: OpenWeather API key; falls back to app config when omitted
        default_location: Used when current_conditions() gets no location
        timeout: Per-request timeout in seconds
        cache_ttl: Seconds to reuse a location's snapshot
        session: Optional requests.Session (tests inject a mock)
    """

    def __init__(
        self,
        api_key: str | None = None,
        default_location: str | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        cache_ttl: int = WEATHER_CACHE_TTL_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.default_location = default_location
        self.timeout = timeout
        self.session = session or requests.Session()
        self._cache = LockedTTLCache(ttl=cache_ttl, maxsize=WEATHER_CACHE_MAX_ENTRIES)

    def _params_for(self, location: str, key: str) -> dict:
        params = {"appid": key, "units": "metric"}
        mzip = _US_ZIP.match(location)
        if mzip:
            params["zip"] = f"{mzip.group(1)},US"
        else:
            params["q"] = _normalize_city_query(location)
        return params

    def _fetch(self, location: str, key: str) -> WeatherSnapshot:
        try:
            r = self.session.get(OPENWEATHER_CURRENT_URL, params=self._params_for(location, key), timeout=self.timeout)
            if r.status_code == 404 and not _US_ZIP.match(location):
                r = self.session.get(
                    OPENWEATHER_CURRENT_URL,
                    params={"q": location, "appid": key, "units": "metric"},
                    timeout=self.timeout,
                )
            r.raise_for_status()
            data = r.json()
        except (requests.RequestException, ValueError) as e:
            raise WeatherUnavailable(f"OpenWeather request failed for {location!r}: {e}") from e
        return parse_current_weather(data, location)

    def current_conditions(self, location: str | None = None) -> WeatherSnapshot:
        location = (location or self.default_location or "").strip()
        if not location:
            raise WeatherUnavailable("no location configured")
        key = self.api_key or _get_api_key()
        if not key:
            raise WeatherUnavailable("OPENWEATHER_API_KEY is not set")

        return self._cache.get_or_set(location.lower(), lambda: self._fetch(location, key))

    def clear_cache(self) -> None:
        self._cache.clear()


def safe_current_conditions(provider: WeatherProvider | None, location: str | None = None) -> Optional[WeatherSnapshot]:
    """
    Best-effort weather lookup.

    Returns:
        WeatherSnapshot, or None when there is no provider or it failed.
        Failures are logged at warning level and never raised.
    """
    if provider is None:
        return None
    try:
        return provider.current_conditions(location)
    except WeatherUnavailable as e:
        logger.warning(f"[Weather] Unavailable, using base schedule: {e}")
    except Exception as e:
        logger.warning(f"[Weather] Provider error, using base schedule: {e}", exc_info=True)
    return None
