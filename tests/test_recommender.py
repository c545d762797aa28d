"""
Unit tests for weather-adjusted recommendations (carecoach/services/recommender.py).

Tests bounds, monotonicity, fallback when weather is missing or failing,
and plant-type soil-check hints.
"""

import pytest
import requests
from datetime import datetime, timezone
from unittest.mock import MagicMock

from carecoach.models import WeatherSnapshot
from carecoach.services import recommender as rec
from carecoach.services.recommender import CareRecommender, auto_watering_frequency_days, infer_watering_type
from carecoach.services.weather import WeatherUnavailable
from tests.conftest import FakeWeather, HOT_DRY, NEUTRAL, NOW, make_plant


class TestWithoutWeather:
    """No weather means the base recommendation, exactly."""

    def test_no_provider_returns_base_amount(self):
        plant = make_plant(recommended_water_amount=300.0, water_unit="ml")
        result = CareRecommender().recommend(plant)

        assert result.amount == 300.0
        assert result.unit == "ml"
        assert result.multiplier == 1.0
        assert result.interval_days == 7
        assert result.interval_adjustment_days == 0
        assert result.weather_applied is False
        assert result.soil_check

    @pytest.mark.parametrize("error", [
        WeatherUnavailable("down"),
        requests.Timeout("slow"),
        RuntimeError("boom"),
    ])
    def test_provider_failure_falls_back_to_base(self, error):
        plant = make_plant()
        provider = FakeWeather(error=error)

        result = CareRecommender(provider).recommend(plant)

        assert provider.calls == 1
        assert result.amount == plant.recommended_water_amount
        assert result.weather_applied is False

    def test_provider_failure_is_logged_as_warning(self, caplog):
        CareRecommender(FakeWeather(error=WeatherUnavailable("down"))).recommend(make_plant())
        assert any(r.levelname == "WARNING" and "[Weather]" in r.getMessage() for r in caplog.records)

    def test_light_level_ignored_without_weather(self):
        plant = make_plant(light_level="direct")
        assert CareRecommender().recommend(plant).multiplier == 1.0

    def test_known_unavailable_weather_skips_provider(self):
        provider = FakeWeather(error=WeatherUnavailable("down"))

        result = CareRecommender(provider).recommend(make_plant(), None, fetch_weather=False)

        assert provider.calls == 0
        assert result.amount == 250.0
        assert result.weather_applied is False


class TestWeatherAdjustment:
    def test_hot_dry_increases_amount_and_shortens_interval(self):
        result = CareRecommender().recommend(make_plant(light_level="medium"), HOT_DRY)

        assert result.multiplier == 1.5
        assert result.amount == 375.0
        assert result.interval_adjustment_days == -1
        assert result.interval_days == 6
        assert "hot/dry" in result.technique
        assert result.weather_applied is True
        assert result.weather_notes

    def test_cool_wet_decreases_amount_and_lengthens_interval(self):
        weather = WeatherSnapshot(temperature_c=10.0, humidity=90, precipitation_mm=12.0, recent_precipitation=True)
        result = CareRecommender().recommend(make_plant(light_level="low"), weather)

        assert result.multiplier == 0.5
        assert result.amount == 125.0
        assert result.interval_adjustment_days == 1
        assert result.interval_days == 8
        assert "cool/humid" in result.technique

    def test_neutral_weather_keeps_base(self):
        result = CareRecommender().recommend(make_plant(light_level="medium"), NEUTRAL)

        assert result.multiplier == 1.0
        assert result.amount == 250.0
        assert result.weather_applied is True

    def test_provider_snapshot_used_when_none_passed(self):
        provider = MagicMock()
        provider.current_conditions.return_value = HOT_DRY

        result = CareRecommender(provider).recommend(make_plant())

        provider.current_conditions.assert_called_once()
        assert result.amount > 250.0

    def test_amount_always_within_bounds(self):
        plant = make_plant(recommended_water_amount=200.0)
        recommender = CareRecommender()
        for temp_c in (-10, 0, 10, 18, 27, 30, 34, 40):
            for humidity in (None, 10, 30, 50, 75, 95):
                for precip in (0.0, 1.0, 5.0, 20.0):
                    for light in ("low", "medium", "bright", "direct"):
                        plant.light_level = light
                        weather = WeatherSnapshot(temperature_c=temp_c, humidity=humidity, precipitation_mm=precip)
                        result = recommender.recommend(plant, weather)
                        assert 100.0 <= result.amount <= 300.0

    def test_monotonic_in_temperature(self):
        recommender = CareRecommender()
        plant = make_plant()
        multipliers = [
            recommender.recommend(plant, WeatherSnapshot(temperature_c=t, humidity=50)).multiplier
            for t in range(-5, 45)
        ]
        assert multipliers == sorted(multipliers)

    def test_monotonic_in_precipitation(self):
        recommender = CareRecommender()
        plant = make_plant()
        multipliers = [
            recommender.recommend(plant, WeatherSnapshot(temperature_c=20, humidity=50, precipitation_mm=mm)).multiplier
            for mm in (0.0, 0.5, 2.5, 5.0, 10.0, 30.0)
        ]
        assert multipliers == sorted(multipliers, reverse=True)

    def test_monotonic_in_humidity(self):
        recommender = CareRecommender()
        plant = make_plant()
        multipliers = [
            recommender.recommend(plant, WeatherSnapshot(temperature_c=20, humidity=h)).multiplier
            for h in range(0, 101, 5)
        ]
        assert multipliers == sorted(multipliers, reverse=True)

    def test_deterministic(self):
        plant = make_plant()
        assert CareRecommender().recommend(plant, HOT_DRY) == CareRecommender().recommend(plant, HOT_DRY)

    def test_custom_bounds(self):
        result = CareRecommender(max_multiplier=1.2).recommend(make_plant(), HOT_DRY)
        assert result.multiplier == 1.2


class TestSoilCheck:
    @pytest.mark.parametrize("overrides,expected", [
        ({"scientific_name": "Echeveria elegans", "nickname": ""}, "succulent"),
        ({"scientific_name": "Opuntia microdasys", "nickname": "", "family": "Cactaceae"}, "cactus"),
        ({"scientific_name": "Monstera deliciosa", "nickname": ""}, "tropical"),
        ({"scientific_name": "Phalaenopsis amabilis", "nickname": ""}, "orchid"),
        ({"scientific_name": "Ocimum basilicum", "nickname": "Basil"}, "herb"),
        ({"scientific_name": "Nephrolepis exaltata", "nickname": ""}, "fern"),
        ({"scientific_name": "Ficus elastica", "nickname": "Rubber"}, "foliage"),
    ])
    def test_infer_watering_type(self, overrides, expected):
        assert infer_watering_type(make_plant(**overrides)) == expected

    def test_succulent_hint(self):
        plant = make_plant(scientific_name="Echeveria elegans", nickname="")
        assert CareRecommender().recommend(plant).soil_check == rec.SOIL_CHECKS["succulent"]

    def test_every_type_has_a_hint(self):
        for watering_type, _ in rec.WATERING_TYPE_KEYWORDS:
            assert rec.SOIL_CHECKS[watering_type]
        assert rec.SOIL_CHECKS["foliage"]


class TestFertilizer:
    def test_fertilizer_uses_base_profile(self):
        plant = make_plant(recommended_fertilizer_amount=10.0, fertilizer_unit="g", fertilizing_frequency_days=14)
        result = CareRecommender().recommend_fertilizer(plant)

        assert result.amount == 10.0
        assert result.unit == "g"
        assert result.frequency_days == 14
        assert result.amount_text == "10g"


JANUARY = datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)


class TestSeasonalGuidance:
    def test_summer_note_attached_without_weather(self):
        result = CareRecommender(clock=lambda: NOW).recommend(make_plant())

        assert result.season == "summer"
        assert result.seasonal_note == rec.SEASONAL_NOTES["summer"]
        assert result.amount == 250.0

    def test_note_attached_with_weather(self):
        result = CareRecommender(clock=lambda: JANUARY).recommend(make_plant(), NEUTRAL)

        assert result.season == "winter"
        assert result.seasonal_note.startswith("Dormant period")
        assert result.amount == 250.0

    def test_southern_hemisphere_flips_season(self):
        result = CareRecommender(clock=lambda: NOW, latitude=-33.9).recommend(make_plant())
        assert result.season == "winter"

    def test_seasonal_interval_in_payload(self):
        data = CareRecommender(clock=lambda: NOW).recommend(make_plant()).to_dict()

        assert data["seasonal_interval_days"] == 5
        assert data["seasonal_note"]

    @pytest.mark.parametrize("overrides,season,expected", [
        ({}, "summer", 5),
        ({}, "winter", 8),
        ({"scientific_name": "Echeveria elegans", "nickname": "", "light_level": "direct"}, "winter", 14),
        ({"scientific_name": "Nephrolepis exaltata", "nickname": "", "light_level": "bright"}, "summer", 2),
        ({"scientific_name": "Opuntia microdasys", "nickname": "", "light_level": "low"}, "winter", 19),
    ])
    def test_auto_watering_frequency(self, overrides, season, expected):
        assert auto_watering_frequency_days(make_plant(**overrides), season) == expected

    def test_auto_frequency_clamped(self):
        fern = make_plant(scientific_name="Nephrolepis exaltata", nickname="", light_level="direct")
        assert auto_watering_frequency_days(fern, "summer") == 2

    def test_dormant_seasons_never_shorten_interval(self):
        plant = make_plant()
        summer = auto_watering_frequency_days(plant, "summer")
        assert auto_watering_frequency_days(plant, "fall") > summer
        assert auto_watering_frequency_days(plant, "winter") > summer
