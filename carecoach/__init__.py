"""
Application factory and global configuration.

Creates the Flask app, applies security headers, configures rate limiting,
builds the care services (store, weather provider, clock) and registers the
API blueprint and CLI commands. Startup and wiring live here; domain logic
lives in carecoach.services.
"""

from __future__ import annotations
import os
from datetime import datetime
from typing import Callable, Optional

from flask import Flask, Response
from dotenv import load_dotenv  # ensure .env is loaded for local dev

from .extensions import limiter
from .models import utc_now
from .routes.api import api_bp
from .services.care_services import CareServices, EXTENSION_KEY
from .services.care_store import CareStore, InMemoryCareStore, SupabaseCareStore
from .services.weather import OpenWeatherProvider, WeatherProvider


def _build_store(app: Flask) -> CareStore:
    """Pick the persistence backend from CARE_STORE (falls back to memory)."""
    if app.config.get("CARE_STORE") == "supabase":
        try:
            store = SupabaseCareStore.from_config(app.config)
        except Exception as e:
            app.logger.error(f"Failed to initialize Supabase client: {e}")
            store = None
        if store is not None:
            app.logger.info("Supabase care store initialized successfully")
            return store
        app.logger.warning("Supabase URL or service key not configured. Using in-memory care store.")
    return InMemoryCareStore()


def _build_weather_provider(app: Flask) -> Optional[WeatherProvider]:
    if not app.config.get("WEATHER_ENABLED", True):
        return None
    if not app.config.get("OPENWEATHER_API_KEY"):
        app.logger.warning("[Weather] OPENWEATHER_API_KEY not set; recommendations use base schedules.")
        return None
    return OpenWeatherProvider(
        api_key=app.config["OPENWEATHER_API_KEY"],
        default_location=app.config.get("WEATHER_DEFAULT_LOCATION") or None,
        timeout=app.config.get("WEATHER_TIMEOUT_SECONDS", 6),
        cache_ttl=app.config.get("WEATHER_CACHE_TTL_SECONDS", 600),
    )


def create_app(
    store: Optional[CareStore] = None,
    weather_provider: Optional[WeatherProvider] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> Flask:
    """
    Build the Flask app.

    Args:
        store: Care store to use instead of the configured one
        weather_provider: Weather provider to use instead of OpenWeather
        clock: "Now" source (tests pass a fixed clock)
    """
    # override=False so production env vars are not overwritten by a stale .env file
    load_dotenv(override=False)

    app = Flask(__name__)

    # Allow APP_CONFIG to override (e.g., carecoach.config.DevConfig)
    cfg_path = os.getenv("APP_CONFIG", "carecoach.config.ProdConfig")
    try:
        app.config.from_object(cfg_path)
    except (ImportError, AttributeError) as e:
        app.logger.warning(f"Could not load config object {cfg_path}: {e}")
        app.config.from_object("carecoach.config.BaseConfig")

    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    limiter.init_app(app)
    if not app.config.get("RATELIMIT_ENABLED", True):
        limiter.enabled = False

    services = CareServices(
        store=store or _build_store(app),
        weather_provider=weather_provider or _build_weather_provider(app),
        clock=clock or utc_now,
        config=app.config,
    )
    app.extensions[EXTENSION_KEY] = services

    @app.after_request
    def apply_security_headers(resp: Response) -> Response:
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        resp.headers["X-Frame-Options"] = "DENY"
        return resp

    # Blueprints
    app.register_blueprint(api_bp, url_prefix="/api/v1")

    # Register CLI commands
    from .cli import care_status_command, coach_suggestions_command
    app.cli.add_command(care_status_command)
    app.cli.add_command(coach_suggestions_command)

    return app
