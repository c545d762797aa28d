"""
Coach engine: runs every enabled rule and concatenates their suggestions.

The engine does not prune expired suggestions or resolve plant ids; callers
do that at the point of use with active_suggestions() and drop_dangling().
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

from ..models import CareEvent, CoachSuggestion, Plant, Surface, utc_now
from .coach_rules import (
    CoachRule,
    OverdueWateringRule,
    StreakNudgeRule,
    OVERDUE_WATERING_LIMIT,
    OVERDUE_WATERING_TTL_HOURS,
    STREAK_NUDGE_TTL_HOURS,
)
from .recommender import CareRecommender

logger = logging.getLogger(__name__)


def _get_config(config: Mapping[str, Any] | None, key: str, default):
    if not config:
        return default
    return config.get(key, default)


def build_default_rules(recommender: CareRecommender, config: Mapping[str, Any] | None = None) -> List[CoachRule]:
    """
    Build the standard rule list, honoring COACH_RULE_* toggles.

    Args:
        recommender: Shared recommender for amount/soil-check text
        config: Flask config (or any mapping); None uses defaults

    Returns:
        Enabled rules in evaluation order
    """
    rules: List[CoachRule] = []
    if _get_config(config, "COACH_RULE_OVERDUE_WATERING_ENABLED", True):
        rules.append(OverdueWateringRule(
            recommender,
            limit=_get_config(config, "COACH_OVERDUE_WATERING_LIMIT", OVERDUE_WATERING_LIMIT),
            ttl_hours=_get_config(config, "COACH_OVERDUE_WATERING_TTL_HOURS", OVERDUE_WATERING_TTL_HOURS),
        ))
    if _get_config(config, "COACH_RULE_STREAK_NUDGE_ENABLED", True):
        rules.append(StreakNudgeRule(
            ttl_hours=_get_config(config, "COACH_STREAK_NUDGE_TTL_HOURS", STREAK_NUDGE_TTL_HOURS),
        ))
    return rules


class CoachEngine:
    """
    Evaluates a list of coach rules over a collection snapshot.

    Args:
        rules: Rules to run, in output order
        clock: Returns "now" when evaluate() is not given one
    """

    def __init__(self, rules: Iterable[CoachRule], clock: Callable[[], datetime] = utc_now):
        self.rules = list(rules)
        self.clock = clock

    def evaluate(
        self,
        plants: Sequence[Plant],
        events: Sequence[CareEvent],
        now: Optional[datetime] = None,
    ) -> List[CoachSuggestion]:
        now = now or self.clock()
        plants = list(plants)
        events = list(events)

        suggestions: List[CoachSuggestion] = []
        for rule in self.rules:
            produced = rule.evaluate(plants, events, now)
            suggestions.extend(produced)

        logger.info(f"[Coach] {len(suggestions)} suggestion(s) from {len(self.rules)} rule(s) for {len(plants)} plant(s)")
        return suggestions


def active_suggestions(
    suggestions: Iterable[CoachSuggestion],
    surface: Surface | str,
    now: datetime,
) -> List[CoachSuggestion]:
    """Suggestions for ``surface`` that have not expired at ``now``."""
    surface = Surface(surface)
    return [s for s in suggestions if s.surface == surface and not s.is_expired(now)]


def drop_dangling(
    suggestions: Iterable[CoachSuggestion],
    plant_ids: Iterable[str],
) -> List[CoachSuggestion]:
    """
    Discard suggestions that point at a plant which no longer exists.

    Collection-wide suggestions (plant_id None) are always kept.
    """
    known = set(plant_ids)
    kept = []
    for suggestion in suggestions:
        if suggestion.plant_id is not None and suggestion.plant_id not in known:
            logger.debug(f"[Coach] Dropping suggestion for missing plant {suggestion.plant_id}")
            continue
        kept.append(suggestion)
    return kept
