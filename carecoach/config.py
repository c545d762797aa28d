"""
Centralized configuration for all environments.

Select a config by setting:
  APP_CONFIG=carecoach.config.DevConfig      # local dev
  APP_CONFIG=carecoach.config.ProdConfig     # production (default if unset)
  APP_CONFIG=carecoach.config.TestConfig     # pytest

Notes:
- SECRET_KEY is read from FLASK_SECRET_KEY
- Rate limiting uses Flask-Limiter v3 keys (RATELIMIT_*).
- CARE_STORE selects persistence: "memory" or "supabase".
"""

from __future__ import annotations
import os
import secrets


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes"}


class BaseConfig:
    # Secrets & basics (random key when unset so dev/test never run with "")
    SECRET_KEY = os.getenv("FLASK_SECRET_KEY") or secrets.token_hex(32)
    DEBUG = False
    TESTING = False

    # Persistence
    CARE_STORE = os.getenv("CARE_STORE", "memory")  # "memory" or "supabase"
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY", "")

    # Weather (OpenWeather)
    OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY", "")
    WEATHER_ENABLED = _env_bool("WEATHER_ENABLED", "true")
    WEATHER_DEFAULT_LOCATION = os.getenv("WEATHER_DEFAULT_LOCATION", "")
    WEATHER_TIMEOUT_SECONDS = float(os.getenv("WEATHER_TIMEOUT_SECONDS", "6"))
    WEATHER_CACHE_TTL_SECONDS = int(os.getenv("WEATHER_CACHE_TTL_SECONDS", "600"))  # 10 minutes

    # Recommendation bounds (multiplier applied to the base water amount)
    RECOMMENDATION_MIN_MULTIPLIER = 0.5
    RECOMMENDATION_MAX_MULTIPLIER = 1.5

    # Coach rules
    COACH_RULE_OVERDUE_WATERING_ENABLED = _env_bool("COACH_RULE_OVERDUE_WATERING_ENABLED", "true")
    COACH_RULE_STREAK_NUDGE_ENABLED = _env_bool("COACH_RULE_STREAK_NUDGE_ENABLED", "true")
    COACH_OVERDUE_WATERING_LIMIT = 3  # Max overdue-watering suggestions per pass
    COACH_OVERDUE_WATERING_TTL_HOURS = 6
    COACH_STREAK_NUDGE_TTL_HOURS = 4

    # Analytics
    ANALYTICS_WINDOW_DAYS = int(os.getenv("ANALYTICS_WINDOW_DAYS", "90"))
    ANALYTICS_LATITUDE = float(os.getenv("ANALYTICS_LATITUDE", "40.0"))  # negative = Southern Hemisphere

    # Flask-Limiter v3
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", "true")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "40 per minute; 2000 per day")
    CARE_LOG_RATE_LIMIT = "30 per minute"

    # Misc
    JSON_SORT_KEYS = False


class ProdConfig(BaseConfig):
    """Production settings (selected by default if APP_CONFIG is unset)."""
    pass


class DevConfig(BaseConfig):
    """Developer-friendly settings."""
    ENV = "development"
    DEBUG = True


class TestConfig(BaseConfig):
    """CI/pytest settings."""
    TESTING = True
    DEBUG = True
    CARE_STORE = "memory"
    # Usually disable the limiter in tests to avoid flakiness
    RATELIMIT_ENABLED = False
    # Never call the real weather API from tests
    WEATHER_ENABLED = False
    OPENWEATHER_API_KEY = ""
