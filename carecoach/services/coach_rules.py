"""
Coach rules.

Each rule inspects the whole collection plus recent care events and returns
zero or more time-bound CoachSuggestions. Rules only read their inputs, so
they can be evaluated in any order or concurrently.

Rules:
- OverdueWateringRule: up to 3 plants whose watering is overdue (or was
  never logged), with the weather-adjusted amount and soil-check hint.
- StreakNudgeRule: one collection-wide nudge when nothing was logged today.

New rules subclass CoachRule and are added to the engine's rule list.
"""

from __future__ import annotations
from datetime import datetime, timedelta
from typing import List, Sequence

from ..models import CareEvent, CoachSuggestion, Plant, Surface
from . import care_clock
from .recommender import CareRecommender

OVERDUE_WATERING_LIMIT = 3
OVERDUE_WATERING_TTL_HOURS = 6
STREAK_NUDGE_TTL_HOURS = 4


class CoachRule:
    """Base class for coach rules."""

    name = "rule"

    def evaluate(
        self,
        plants: Sequence[Plant],
        events: Sequence[CareEvent],
        now: datetime,
    ) -> List[CoachSuggestion]:
        raise NotImplementedError


class OverdueWateringRule(CoachRule):
    """
    Suggest watering for plants that are past due.

    Plants are taken in input order and capped at ``limit``; there is no
    re-sorting by urgency.
    """

    name = "overdue_watering"

    def __init__(
        self,
        recommender: CareRecommender,
        limit: int = OVERDUE_WATERING_LIMIT,
        ttl_hours: float = OVERDUE_WATERING_TTL_HOURS,
    ):
        self.recommender = recommender
        self.limit = limit
        self.ttl = timedelta(hours=ttl_hours)

    def evaluate(self, plants, events, now):
        overdue = []
        for plant in plants:
            status = care_clock.watering_status(plant, now, events)
            if status.is_overdue or status.never_logged:
                overdue.append((plant, status))
            if len(overdue) >= self.limit:
                break

        if not overdue:
            return []

        # One weather lookup per pass
        weather = self.recommender.current_weather()

        suggestions = []
        for plant, status in overdue:
            recommendation = self.recommender.recommend(plant, weather, fetch_weather=False)

            if status.never_logged:
                reason = "No watering logged yet"
            else:
                reason = f"Last watering past {plant.watering_frequency_days}d"

            suggestions.append(CoachSuggestion(
                title=f"Water soon: {plant.display_name}",
                message=f"~{recommendation.amount_text}. {recommendation.soil_check}",
                reason=reason,
                plant_id=plant.id,
                surface=Surface.TODAY,
                expires_at=now + self.ttl,
            ))
        return suggestions


class StreakNudgeRule(CoachRule):
    """Nudge the user to log any care when nothing has been logged today."""

    name = "streak_nudge"

    def __init__(self, ttl_hours: float = STREAK_NUDGE_TTL_HOURS):
        self.ttl = timedelta(hours=ttl_hours)

    def evaluate(self, plants, events, now):
        if not plants:
            return []
        if any(e.timestamp is not None and care_clock.is_same_day(e.timestamp, now) for e in events):
            return []

        return [CoachSuggestion(
            title="Quick win: log one care",
            message="Keep your streak going with any small task.",
            reason="No care logged today",
            plant_id=None,
            surface=Surface.TODAY,
            expires_at=now + self.ttl,
        )]

