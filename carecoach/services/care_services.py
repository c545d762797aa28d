"""
Service container.

Bundles the store, weather provider, clock and the services built on top
of them. create_app() builds one per app and stores it in
``app.extensions["carecoach"]``; tests build their own with a fixed clock
and fake weather.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from flask import current_app

from ..models import CareState, CoachSuggestion, Surface, utc_now
from .analytics import AnalyticsAggregator
from .care_state import CareStateResolver
from .care_store import CareStore
from .coach_engine import CoachEngine, active_suggestions, build_default_rules, drop_dangling
from .recommender import CareRecommender, MAX_MULTIPLIER, MIN_MULTIPLIER
from .weather import WeatherProvider

EXTENSION_KEY = "carecoach"


class CareServices:
    """
    Wires the care services together.

    Args:
        store: Plant/care-event storage
        weather_provider: Optional current-conditions provider
        clock: Returns the current time
        config: Flask config or any mapping with COACH_*/RECOMMENDATION_* keys
    """

    def __init__(
        self,
        store: CareStore,
        weather_provider: WeatherProvider | None = None,
        clock: Callable[[], datetime] = utc_now,
        config: Mapping[str, Any] | None = None,
    ):
        config = config or {}
        self.store = store
        self.weather_provider = weather_provider
        self.clock = clock
        self.recommender = CareRecommender(
            weather_provider,
            min_multiplier=config.get("RECOMMENDATION_MIN_MULTIPLIER", MIN_MULTIPLIER),
            max_multiplier=config.get("RECOMMENDATION_MAX_MULTIPLIER", MAX_MULTIPLIER),
            clock=clock,
            latitude=config.get("ANALYTICS_LATITUDE", 40.0),
        )
        self.resolver = CareStateResolver(self.recommender)
        self.engine = CoachEngine(build_default_rules(self.recommender, config), clock=clock)
        self.analytics = AnalyticsAggregator(
            clock=clock,
            window_days=config.get("ANALYTICS_WINDOW_DAYS", 90),
            latitude=config.get("ANALYTICS_LATITUDE", 40.0),
        )

    def care_state(self, plant_id: str, now: Optional[datetime] = None) -> CareState:
        """Resolve the care state for one plant (raises PlantNotFound)."""
        plant = self.store.require_plant(plant_id)
        now = now or self.clock()
        events = [e for e in self.store.list_care_events() if e.plant_id == plant_id]
        return self.resolver.resolve(plant, now, events=events)

    def care_states(self, now: Optional[datetime] = None) -> Dict[str, CareState]:
        """Care state for every plant, keyed by plant id, with one weather lookup."""
        now = now or self.clock()
        events = self.store.list_care_events()
        weather = self.recommender.current_weather()
        return {
            plant.id: self.resolver.resolve(plant, now, weather=weather, events=events, weather_checked=True)
            for plant in self.store.list_plants()
        }

    def suggestions(self, surface: Surface | str = Surface.TODAY, now: Optional[datetime] = None) -> List[CoachSuggestion]:
        """
        Live suggestions for a surface.

        Evaluates every rule, then drops expired entries and entries whose
        plant has been deleted since generation.
        """
        now = now or self.clock()
        plants = self.store.list_plants()
        generated = self.engine.evaluate(plants, self.store.list_care_events(), now)
        current_ids = [p.id for p in self.store.list_plants()]
        return drop_dangling(active_suggestions(generated, surface, now), current_ids)


def get_services() -> CareServices:
    """The CareServices instance for the current app."""
    return current_app.extensions[EXTENSION_KEY]
