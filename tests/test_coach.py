"""
Unit tests for coach rules and the coach engine
(carecoach/services/coach_rules.py, carecoach/services/coach_engine.py).
"""

from datetime import timedelta
from unittest.mock import MagicMock

from carecoach.models import CoachSuggestion, Surface
from carecoach.services.coach_engine import (
    CoachEngine,
    active_suggestions,
    build_default_rules,
    drop_dangling,
)
from carecoach.services.coach_rules import OverdueWateringRule, StreakNudgeRule
from carecoach.services.recommender import CareRecommender, SOIL_CHECKS
from tests.conftest import FakeWeather, HOT_DRY, NOW, days_ago, make_event, make_plant


def _overdue_rule(provider=None):
    return OverdueWateringRule(CareRecommender(provider))


class TestOverdueWateringRule:
    def test_caps_at_three_in_input_order(self):
        plants = [make_plant(id=f"p{i}", last_watered=days_ago(10 + i)) for i in range(5)]

        suggestions = _overdue_rule().evaluate(plants, [], NOW)

        assert len(suggestions) == 3
        assert [s.plant_id for s in suggestions] == ["p0", "p1", "p2"]

    def test_never_exceeds_limit(self):
        for count in (0, 1, 3, 4, 12):
            plants = [make_plant(last_watered=days_ago(30)) for _ in range(count)]
            assert len(_overdue_rule().evaluate(plants, [], NOW)) <= 3

    def test_suggestion_content(self):
        plant = make_plant(nickname="Monty", scientific_name="Monstera deliciosa", last_watered=days_ago(10))

        [suggestion] = _overdue_rule().evaluate([plant], [], NOW)

        assert suggestion.title == "Water soon: Monty"
        assert suggestion.message == f"~250ml. {SOIL_CHECKS['tropical']}"
        assert suggestion.reason == "Last watering past 7d"
        assert suggestion.surface == Surface.TODAY
        assert suggestion.expires_at == NOW + timedelta(hours=6)

    def test_message_embeds_weather_adjusted_amount(self):
        plant = make_plant(last_watered=days_ago(10))
        [suggestion] = _overdue_rule(FakeWeather(HOT_DRY)).evaluate([plant], [], NOW)
        assert suggestion.message.startswith("~375ml.")

    def test_never_watered_plant_included(self):
        plant = make_plant(last_watered=None)
        [suggestion] = _overdue_rule().evaluate([plant], [], NOW)
        assert suggestion.reason == "No watering logged yet"

    def test_due_today_and_recent_plants_excluded(self):
        plants = [make_plant(last_watered=days_ago(7)), make_plant(last_watered=days_ago(2))]
        assert _overdue_rule().evaluate(plants, [], NOW) == []

    def test_weather_fetched_once_per_pass(self):
        provider = FakeWeather(HOT_DRY)
        plants = [make_plant(last_watered=days_ago(10)) for _ in range(3)]

        _overdue_rule(provider).evaluate(plants, [], NOW)

        assert provider.calls == 1

    def test_no_weather_lookup_when_nothing_overdue(self):
        provider = MagicMock()
        _overdue_rule(provider).evaluate([make_plant(last_watered=days_ago(1))], [], NOW)
        provider.current_conditions.assert_not_called()

    def test_stale_after_six_hours(self):
        [suggestion] = _overdue_rule().evaluate([make_plant(last_watered=days_ago(10))], [], NOW)

        assert suggestion.is_expired(NOW + timedelta(hours=6)) is False
        assert suggestion.is_expired(NOW + timedelta(hours=6, seconds=1)) is True

    def test_same_text_when_re_evaluated_before_staleness(self):
        plants = [make_plant(id="a", last_watered=days_ago(10))]
        first = _overdue_rule().evaluate(plants, [], NOW)
        later = _overdue_rule().evaluate(plants, [], NOW + timedelta(hours=1))

        assert [(s.title, s.message) for s in first] == [(s.title, s.message) for s in later]


class TestStreakNudgeRule:
    def test_nudge_when_nothing_logged_today(self):
        plants = [make_plant()]
        suggestions = StreakNudgeRule().evaluate(plants, [make_event(plants[0], days_ago(1))], NOW)

        assert len(suggestions) == 1
        assert suggestions[0].plant_id is None
        assert suggestions[0].title == "Quick win: log one care"
        assert suggestions[0].expires_at == NOW + timedelta(hours=4)

    def test_no_nudge_when_event_today(self):
        plant = make_plant()
        events = [make_event(plant, NOW.replace(hour=7))]
        assert StreakNudgeRule().evaluate([plant], events, NOW) == []

    def test_no_nudge_for_empty_collection(self):
        assert StreakNudgeRule().evaluate([], [], NOW) == []

    def test_collection_wide_event_today_satisfies_streak(self):
        """One plant cared for today, one never: no nudge."""
        cared = make_plant(id="cared")
        untouched = make_plant(id="untouched", last_watered=None, last_fertilized=None)
        events = [make_event(cared, NOW - timedelta(hours=1))]

        assert StreakNudgeRule().evaluate([cared, untouched], events, NOW) == []

    def test_stale_after_four_hours(self):
        [suggestion] = StreakNudgeRule().evaluate([make_plant()], [], NOW)
        assert suggestion.is_expired(NOW + timedelta(hours=4, minutes=1)) is True


class TestCoachEngine:
    def test_concatenates_rules_in_order(self):
        plants = [make_plant(id="late", last_watered=days_ago(10))]
        engine = CoachEngine([_overdue_rule(), StreakNudgeRule()])

        suggestions = engine.evaluate(plants, [], NOW)

        assert [s.plant_id for s in suggestions] == ["late", None]

    def test_uses_clock_when_now_missing(self):
        engine = CoachEngine([StreakNudgeRule()], clock=lambda: NOW)
        [suggestion] = engine.evaluate([make_plant()], [])
        assert suggestion.expires_at == NOW + timedelta(hours=4)

    def test_rules_can_be_disabled_by_config(self):
        rules = build_default_rules(CareRecommender(), {"COACH_RULE_STREAK_NUDGE_ENABLED": False})
        assert [r.name for r in rules] == ["overdue_watering"]

    def test_default_rules(self):
        rules = build_default_rules(CareRecommender())
        assert [r.name for r in rules] == ["overdue_watering", "streak_nudge"]

    def test_config_caps_and_ttls(self):
        config = {"COACH_OVERDUE_WATERING_LIMIT": 1, "COACH_OVERDUE_WATERING_TTL_HOURS": 2}
        engine = CoachEngine(build_default_rules(CareRecommender(), config))
        plants = [make_plant(last_watered=days_ago(10)) for _ in range(3)]

        overdue = [s for s in engine.evaluate(plants, [], NOW) if s.plant_id]

        assert len(overdue) == 1
        assert overdue[0].expires_at == NOW + timedelta(hours=2)

    def test_engine_does_not_prune_expired(self):
        engine = CoachEngine([StreakNudgeRule(ttl_hours=0)])
        assert len(engine.evaluate([make_plant()], [], NOW)) == 1


class TestConsumptionHelpers:
    def _suggestion(self, surface=Surface.TODAY, hours=1, plant_id=None):
        return CoachSuggestion(
            title="t", message="m", reason="r",
            surface=surface, expires_at=NOW + timedelta(hours=hours), plant_id=plant_id,
        )

    def test_active_filters_surface_and_expiry(self):
        live = self._suggestion()
        expired = self._suggestion(hours=-1)
        other = self._suggestion(surface=Surface.ANALYTICS)

        assert active_suggestions([live, expired, other], "today", NOW) == [live]

    def test_drop_dangling_discards_deleted_plants(self):
        kept = self._suggestion(plant_id="p1")
        dangling = self._suggestion(plant_id="gone")
        collection_wide = self._suggestion()

        assert drop_dangling([kept, dangling, collection_wide], ["p1"]) == [kept, collection_wide]
