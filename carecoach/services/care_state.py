"""
Care state resolver: one prioritized "what does this plant need now" state.

Watering and fertilizing are evaluated independently. When both need
action the state lists both CTAs under a combined "Care due" title; one
need never masks the other.

Resolving is read-only. Logging care (creating a CareEvent and moving the
plant's last-care timestamp) is CareStore.log_care.
"""

from __future__ import annotations
from datetime import datetime
from typing import Iterable, Optional

from ..models import (
    CareActionType,
    CareCTA,
    CareEvent,
    CareState,
    CareStatusType,
    CareType,
    DueStatus,
    Plant,
    WeatherSnapshot,
)
from ..utils.filters import relative_date, relative_day
from . import care_clock
from .recommender import CareRecommender

LOG_WATER_CTA = CareCTA(CareActionType.LOG_WATER, "Log water")
LOG_FERTILIZE_CTA = CareCTA(CareActionType.LOG_FERTILIZE, "Log fertilizer")

COMBINED_SEPARATOR = " · "


def _condition(verb: str, status: DueStatus) -> str:
    if status.is_overdue:
        return f"{verb} overdue {status.days_overdue}d"
    return f"{verb} today"


def _title(verb: str, status: DueStatus) -> str:
    return f"{verb} overdue" if status.is_overdue else f"{verb} today"


def _amount_subtitle(amount_text: str, status: DueStatus) -> str:
    if status.is_overdue:
        day_word = "day" if status.days_overdue == 1 else "days"
        return f"Give {amount_text} · {status.days_overdue} {day_word} late"
    return f"Give {amount_text}"


def _last_care_meta(label: str, missing: str, last: Optional[datetime], now: datetime) -> str:
    if last is None:
        return missing
    return f"{label} {relative_date(last, now)}"


class CareStateResolver:
    """
    Resolves a CareState for a plant.

    Args:
        recommender: Supplies the weather-adjusted water amount
    """

    def __init__(self, recommender: CareRecommender):
        self.recommender = recommender

    def resolve(
        self,
        plant: Plant,
        now: datetime,
        weather: Optional[WeatherSnapshot] = None,
        events: Iterable[CareEvent] = (),
        weather_checked: bool = False,
    ) -> CareState:
        """
        Resolve what ``plant`` needs at ``now``.

        Pass ``weather_checked=True`` when the caller already looked weather
        up for this pass; a None ``weather`` then means unavailable and the
        provider is not asked again.
        """
        events = list(events)
        last_watered = care_clock.last_care_at(plant, CareType.WATERING, events)
        last_fertilized = care_clock.last_care_at(plant, CareType.FERTILIZING, events)
        water = care_clock.due_status(plant.watering_frequency_days, last_watered, now)
        fertilize = care_clock.due_status(plant.fertilizing_frequency_days, last_fertilized, now)

        water_meta = _last_care_meta("Last watered", "Watering not logged yet", last_watered, now)

        if water.needs_action and fertilize.needs_action:
            return CareState(
                plant_id=plant.id,
                status_type=CareStatusType.NEEDS_ACTION,
                title="Care due",
                subtitle=COMBINED_SEPARATOR.join(
                    [_condition("Water", water), _condition("Fertilize", fertilize)]
                ),
                meta=water_meta,
                ctas=(LOG_WATER_CTA, LOG_FERTILIZE_CTA),
            )

        if water.needs_action:
            recommendation = self.recommender.recommend(plant, weather, fetch_weather=not weather_checked)
            return CareState(
                plant_id=plant.id,
                status_type=CareStatusType.NEEDS_ACTION,
                title=_title("Water", water),
                subtitle=_amount_subtitle(recommendation.amount_text, water),
                meta=water_meta,
                ctas=(LOG_WATER_CTA,),
            )

        if fertilize.needs_action:
            fertilizer = self.recommender.recommend_fertilizer(plant)
            return CareState(
                plant_id=plant.id,
                status_type=CareStatusType.NEEDS_ACTION,
                title=_title("Fertilize", fertilize),
                subtitle=_amount_subtitle(fertilizer.amount_text, fertilize),
                meta=_last_care_meta("Last fertilized", "Fertilizing not logged yet", last_fertilized, now),
                ctas=(LOG_FERTILIZE_CTA,),
            )

        if water.next_due is not None:
            subtitle = f"Next watering {relative_day(water.next_due, now)}"
        else:
            subtitle = f"Water every {plant.watering_frequency_days} days"

        return CareState(
            plant_id=plant.id,
            status_type=CareStatusType.ALL_SET,
            title="All set",
            subtitle=subtitle,
            meta=water_meta,
            ctas=(),
        )
