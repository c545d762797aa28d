"""
Collection analytics.

Descriptive rollups over the plant collection and its care history:
- Health score per plant (0-10 composite of status, care consistency,
  lateness and tenure)
- Growth metrics per plant (growth rate estimate, seasonal variation,
  health correlation, care impact, time to maturity, trend)
- Environmental impact per season
- Performance per location label
- Text insights derived from growth metrics

Every rollup is deterministic for a given snapshot and ``now``. Empty
collections produce empty lists (or four zero-valued seasons), never a
division by zero.
"""

from __future__ import annotations
import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..constants import SEASONS, UNKNOWN_LOCATION
from ..models import (
    CareEvent,
    CareType,
    EnvironmentalImpact,
    GrowthMetrics,
    GrowthTrend,
    HealthStatus,
    LocationAnalysis,
    Plant,
    utc_now,
)
from . import care_clock
from .seasonal_context import (
    SEASON_GROWTH_BASELINE,
    SEASON_HEALTH_MODIFIERS,
    get_optimal_conditions,
    get_season,
    get_seasonal_recommendations,
)

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 90
COMPLETION_LOOKBACK_DAYS = 30
TREND_PERIOD_DAYS = 30

STATUS_HEALTH_BONUS = {
    HealthStatus.EXCELLENT: 3.0,
    HealthStatus.HEALTHY: 1.5,
    HealthStatus.FAIR: 0.0,
    HealthStatus.POOR: -1.5,
    HealthStatus.CRITICAL: -3.0,
}

# Typical months from purchase to mature size
SPECIES_MATURITY_MONTHS = [
    (("monstera",), 24),
    (("pothos", "epipremnum"), 12),
    (("snake plant", "sansevieria", "dracaena trifasciata"), 36),
    (("fiddle leaf fig", "ficus lyrata"), 60),
    (("peace lily", "spathiphyllum"), 18),
]
DEFAULT_MATURITY_MONTHS = 24

# Window is a (start, end) pair; either side may be None
Window = Tuple[Optional[datetime], Optional[datetime]]


def _species(plant: Plant) -> str:
    return plant.scientific_name or plant.display_name


def _maturity_months(plant: Plant) -> int:
    haystack = " ".join([plant.scientific_name, plant.nickname] + list(plant.common_names)).lower()
    for keywords, months in SPECIES_MATURITY_MONTHS:
        if any(k in haystack for k in keywords):
            return months
    return DEFAULT_MATURITY_MONTHS


def _base_growth_rate(health: float) -> float:
    """Estimated cm/month for a plant at this health score."""
    if health >= 8:
        return 3.0
    if health >= 6:
        return 2.0
    if health >= 4:
        return 1.0
    return 0.5


def _challenges_for(avg_health: float) -> List[str]:
    if avg_health < 4:
        return ["Low light conditions", "Poor air circulation", "Inconsistent temperature"]
    if avg_health < 6:
        return ["Moderate light stress", "Humidity fluctuations"]
    return ["Optimal growing conditions"]


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class AnalyticsAggregator:
    """
    Rollups over a plant/care-event snapshot.

    Args:
        clock: Source of "now" (tests pass a fixed clock)
        window_days: Default lookback when no explicit window is given
        latitude: Hemisphere for season bucketing
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        window_days: int = DEFAULT_WINDOW_DAYS,
        latitude: float = 40.0,
    ):
        self.clock = clock
        self.window_days = window_days
        self.latitude = latitude

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _resolve_window(self, window: Optional[Window]) -> Tuple[datetime, datetime]:
        start, end = window if window else (None, None)
        end = end or self.clock()
        start = start or end - timedelta(days=self.window_days)
        return start, end

    @staticmethod
    def _events_for(plant: Plant, events: Sequence[CareEvent]) -> List[CareEvent]:
        return [e for e in events if e.plant_id == plant.id and e.timestamp is not None]

    @staticmethod
    def _in_range(events: Sequence[CareEvent], start: datetime, end: datetime) -> List[CareEvent]:
        return [e for e in events if start <= e.timestamp <= end]

    def _expected_care_count(self, plant: Plant, period_days: float) -> float:
        watering = max(1, plant.watering_frequency_days)
        fertilizing = max(1, plant.fertilizing_frequency_days)
        return period_days / watering + max(1.0, period_days / fertilizing)

    # ------------------------------------------------------------------
    # health
    # ------------------------------------------------------------------

    def care_completion_rate(self, plant: Plant, events: Sequence[CareEvent], now: datetime) -> float:
        """Care events logged in the last 30 days versus the schedule, capped at 1."""
        since = now - timedelta(days=COMPLETION_LOOKBACK_DAYS)
        recent = self._in_range(self._events_for(plant, events), since, now)
        expected = self._expected_care_count(plant, COMPLETION_LOOKBACK_DAYS)
        return min(1.0, len(recent) / expected) if expected > 0 else 0.0

    def health_score(self, plant: Plant, events: Sequence[CareEvent], now: Optional[datetime] = None) -> float:
        """
        Composite 0-10 health score.

        Starts at 5, then adjusts for the recorded health status, 30-day
        care completion, overdue watering/fertilizing, tenure and variety of
        care logged.
        """
        now = now or self.clock()
        plant_events = self._events_for(plant, events)
        score = 5.0 + STATUS_HEALTH_BONUS.get(plant.health_status, 0.0)

        completion = self.care_completion_rate(plant, plant_events, now)
        if completion >= 0.8:
            score += 1.5
        elif completion >= 0.6:
            score += 0.5
        elif completion < 0.3:
            score -= 1.0

        water = care_clock.watering_status(plant, now, plant_events)
        if water.is_overdue:
            score -= min(2.0, water.days_overdue * 0.3)
        if care_clock.fertilizing_status(plant, now, plant_events).is_overdue:
            score -= 0.5

        if plant.date_added is not None and care_clock.days_between(plant.date_added, now) > 90:
            score += 0.5
        if len({e.care_type for e in plant_events}) >= 3:
            score += 0.5

        return round(max(0.0, min(10.0, score)), 1)

    # ------------------------------------------------------------------
    # growth
    # ------------------------------------------------------------------

    def _seasonal_variation(self, plant_events: Sequence[CareEvent]) -> Dict[str, float]:
        counts = {season: 0 for season in SEASONS}
        for event in plant_events:
            counts[get_season(event.timestamp, self.latitude)] += 1
        total = sum(counts.values())
        mean = total / len(SEASONS)

        variation = {}
        for season in SEASONS:
            ratio = counts[season] / mean if total else 1.0
            factor = 0.5 + 0.5 * min(ratio, 2.0)
            variation[season] = round(SEASON_GROWTH_BASELINE[season] * factor, 2)
        return variation

    def _trend(self, plant_events: Sequence[CareEvent], now: datetime) -> GrowthTrend:
        period = timedelta(days=TREND_PERIOD_DAYS)
        recent = len(self._in_range(plant_events, now - period, now))
        prior = len([e for e in plant_events if now - 2 * period <= e.timestamp < now - period])
        if recent == 0 and prior == 0:
            return GrowthTrend.DORMANT
        if recent > prior * 1.25:
            return GrowthTrend.ACCELERATING
        if recent < prior * 0.75:
            return GrowthTrend.SLOWING
        return GrowthTrend.STEADY

    def growth_metrics(
        self,
        plants: Sequence[Plant],
        events: Sequence[CareEvent],
        window: Optional[Window] = None,
    ) -> List[GrowthMetrics]:
        """
        Growth metrics for each plant, in collection order.

        Args:
            plants: Plant collection
            events: Care history for the collection
            window: Optional (start, end); defaults to the last window_days

        Returns:
            List of GrowthMetrics (empty for an empty collection)
        """
        start, end = self._resolve_window(window)
        period_days = max(1.0, (end - start).total_seconds() / 86400)

        metrics = []
        for plant in plants:
            plant_events = self._events_for(plant, events)
            windowed = self._in_range(plant_events, start, end)
            health = self.health_score(plant, plant_events, end)

            care_count = len(windowed)
            expected = self._expected_care_count(plant, period_days)
            care_impact = min(1.0, care_count / expected) if expected > 0 else 0.0
            growth_rate = _base_growth_rate(health) * (1 + min(care_count * 0.1, 1.0))

            age_days = care_clock.days_between(plant.date_added, end) if plant.date_added else 0
            remaining_days = max(0, _maturity_months(plant) * 30 - max(0, age_days))

            metrics.append(GrowthMetrics(
                plant_id=plant.id,
                species=_species(plant),
                growth_rate=round(growth_rate, 2),
                seasonal_variation=self._seasonal_variation(windowed),
                health_correlation=round(health / 10, 2),
                care_impact=round(care_impact, 2),
                maturity_estimate=timedelta(days=remaining_days),
                trend=self._trend(plant_events, end),
            ))
        return metrics

    def growth_insights(self, metrics: Sequence[GrowthMetrics]) -> List[Dict[str, str]]:
        """Short text insights for a set of growth metrics."""
        if not metrics:
            return []

        insights = []
        fastest = max(metrics, key=lambda m: m.growth_rate)
        if fastest.growth_rate >= 4.0:
            insights.append({
                "title": "Exceptional Growth Rate",
                "message": f"{fastest.species} is growing {fastest.growth_rate:g} cm/month.",
            })

        spring = _mean([m.seasonal_variation.get("spring", 0.0) for m in metrics])
        if spring >= 1.3:
            insights.append({
                "title": "Spring Growth Surge",
                "message": f"Spring growth runs {spring:.1f}x your baseline. Keep fertilizing on schedule.",
            })

        impact = _mean([m.care_impact for m in metrics])
        if impact >= 0.8:
            insights.append({
                "title": "Care Optimization Success",
                "message": f"You're hitting {impact:.0%} of scheduled care across your plants.",
            })
        return insights

    # ------------------------------------------------------------------
    # seasons
    # ------------------------------------------------------------------

    def _late_waterings_by_season(self, plants: Sequence[Plant], events: Sequence[CareEvent]) -> Dict[str, int]:
        """Waterings logged later than the plant's interval since the previous one."""
        stress = {season: 0 for season in SEASONS}
        for plant in plants:
            waterings = sorted(
                (e for e in self._events_for(plant, events) if e.care_type == CareType.WATERING),
                key=lambda e: e.timestamp,
            )
            for previous, current in zip(waterings, waterings[1:]):
                gap = care_clock.days_between(previous.timestamp, current.timestamp)
                if gap > max(1, plant.watering_frequency_days):
                    stress[get_season(current.timestamp, self.latitude)] += 1
        return stress

    def environmental_impact(
        self,
        plants: Sequence[Plant],
        events: Sequence[CareEvent],
        window: Optional[Window] = None,
    ) -> List[EnvironmentalImpact]:
        """
        Per-season rollup, always four entries (spring, summer, fall, winter).

        A plant counts as active in a season when it has at least one care
        event dated in that season. The window only narrows events when given
        explicitly, so a default call covers the whole history.
        """
        if window:
            start, end = self._resolve_window(window)
            events = [e for e in events if e.timestamp is not None and start <= e.timestamp <= end]
            now = end
        else:
            now = self.clock()

        active: Dict[str, set] = defaultdict(set)
        for event in events:
            if event.timestamp is not None:
                active[get_season(event.timestamp, self.latitude)].add(event.plant_id)

        stress = self._late_waterings_by_season(plants, events)

        impacts = []
        for season in SEASONS:
            scores = [self.health_score(p, events, now) for p in plants if p.id in active[season]]
            avg = min(10.0, _mean(scores) * SEASON_HEALTH_MODIFIERS[season])
            impacts.append(EnvironmentalImpact(
                season=season,
                avg_health_score=round(avg, 1),
                stress_events=stress[season],
                optimal_conditions=tuple(get_optimal_conditions(season)),
                recommendations=tuple(get_seasonal_recommendations(season, len(plants))),
            ))
        return impacts

    # ------------------------------------------------------------------
    # locations
    # ------------------------------------------------------------------

    def location_analysis(
        self,
        plants: Sequence[Plant],
        events: Sequence[CareEvent],
        window: Optional[Window] = None,
    ) -> List[LocationAnalysis]:
        """
        Per-location rollup, best average health first.

        Plants with a blank location are grouped under "Unknown Location".
        """
        if not plants:
            return []

        _, now = self._resolve_window(window)
        growth = {m.plant_id: m.growth_rate for m in self.growth_metrics(plants, events, window)}

        groups: Dict[str, List[Plant]] = {}
        for plant in plants:
            groups.setdefault(plant.location.strip() or UNKNOWN_LOCATION, []).append(plant)

        results = []
        for location, members in groups.items():
            scores = {p.id: self.health_score(p, events, now) for p in members}
            avg = _mean(list(scores.values()))
            healthy = [p for p in members if not p.health_status.is_degraded]

            by_species: Dict[str, List[Plant]] = defaultdict(list)
            for p in members:
                by_species[_species(p)].append(p)
            ranked = sorted(
                by_species.items(),
                key=lambda item: (
                    -_mean([scores[p.id] for p in item[1]]),
                    -_mean([growth.get(p.id, 0.0) for p in item[1]]),
                    item[0],
                ),
            )

            results.append(LocationAnalysis(
                location=location,
                plant_count=len(members),
                avg_health_score=round(avg, 1),
                success_rate=round(len(healthy) / len(members), 2),
                best_species=tuple(name for name, _ in ranked[:3]),
                challenges=tuple(_challenges_for(avg)),
            ))

        results.sort(key=lambda r: (-r.avg_health_score, r.location))
        logger.debug(f"[Analytics] {len(results)} location(s) analysed for {len(plants)} plant(s)")
        return results
