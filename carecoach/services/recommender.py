"""
Weather-adjusted care recommendations.

Starts from the plant's own watering profile (amount + interval) and nudges
it with the current weather signal:

- Heat and dry air dry soil faster: more water, shorter interval.
- Recent rain, cool temperatures and humid air: less water, longer interval.
- The plant's light level only counts when weather is present.

Each signal contributes a fixed step (thresholds below). Steps are summed
into a multiplier that is clamped to [MIN_MULTIPLIER, MAX_MULTIPLIER], so
the result is deterministic and monotonic in every signal. Without weather
the recommendation is exactly the base amount and interval.

A soil-check hint chosen by plant type is always included, along with a
note for the current season and a seasonal watering interval
(auto_watering_frequency_days). Season never changes the amount.
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from ..models import CareRecommendation, FertilizerRecommendation, Plant, WeatherSnapshot, utc_now
from .seasonal_context import get_season
from .weather import WeatherProvider, safe_current_conditions

logger = logging.getLogger(__name__)

MIN_MULTIPLIER = 0.5
MAX_MULTIPLIER = 1.5

# Temperature thresholds (°F), highest first
TEMP_HOT_EXTREME_F = 92
TEMP_HOT_F = 85
TEMP_WARM_F = 80
TEMP_MILD_LOW_F = 65
TEMP_COOL_F = 55

# Humidity thresholds (%)
HUMIDITY_VERY_DRY = 25
HUMIDITY_DRY = 35
HUMIDITY_HUMID = 70
HUMIDITY_VERY_HUMID = 80

# Recent precipitation thresholds (mm)
PRECIP_HEAVY_MM = 10.0
PRECIP_MODERATE_MM = 2.5

# Multiplier bands that move the watering interval by a day
INTERVAL_SHORTEN_AT = 1.3
INTERVAL_LENGTHEN_AT = 0.7

# Watering types, checked in order; first keyword hit wins
WATERING_TYPE_KEYWORDS = [
    ("cactus", ("cactus", "cactaceae", "opuntia", "echinocactus", "mammillaria")),
    ("succulent", ("succulent", "echeveria", "sedum", "aloe", "haworthia", "crassula", "jade", "crassulaceae")),
    ("orchid", ("orchid", "orchidaceae", "phalaenopsis", "dendrobium")),
    ("fern", ("fern", "pteridaceae", "nephrolepis", "polypodiaceae", "adiantum")),
    ("herb", ("herb", "basil", "mint", "rosemary", "thyme", "parsley", "lamiaceae")),
    ("flowering", ("flower", "bloom", "begonia", "african violet", "saintpaulia", "anthurium")),
    ("tropical", ("tropical", "monstera", "philodendron", "calathea", "araceae", "alocasia")),
]

SOIL_CHECKS = {
    "succulent": "Check soil 2-3 inches deep. Should be completely dry before watering.",
    "cactus": "Check soil 2-3 inches deep. Should be completely dry before watering.",
    "tropical": "Check top inch of soil. Should be slightly dry but not completely.",
    "fern": "Check top inch of soil. Should be slightly dry but not completely.",
    "flowering": "Check top 1-2 inches. Water when dry to touch.",
    "herb": "Check top 1-2 inches. Water when dry to touch.",
    "orchid": "Check bark/moss medium. Should be nearly dry but not dusty.",
    "foliage": "Finger test: top inch should be dry, deeper soil slightly moist.",
}

BASE_TECHNIQUE = "Water thoroughly until drainage, then allow the top of the soil to dry before next watering."

SEASONAL_NOTES = {
    "spring": "Growing season - plants may need more frequent watering as they actively grow.",
    "summer": "Peak growing season - monitor closely as soil dries faster in heat.",
    "fall": "Growth slowing - reduce watering frequency as plants prepare for dormancy.",
    "winter": "Dormant period - reduce watering significantly, plants need less water.",
}

# Days between waterings for a typical indoor pot, by watering type
TYPE_BASELINE_DAYS = {
    "cactus": 16,
    "succulent": 14,
    "orchid": 10,
    "fern": 4,
    "flowering": 5,
    "herb": 4,
    "tropical": 6,
    "foliage": 7,
}

LIGHT_INTERVAL_DAYS = {"low": 1, "medium": 0, "bright": -1, "direct": -2}
SEASON_INTERVAL_DAYS = {"spring": 0, "summer": -1, "fall": 1, "winter": 2}

MIN_AUTO_INTERVAL_DAYS = 2
MAX_AUTO_INTERVAL_DAYS = 28


def infer_watering_type(plant: Plant) -> str:
    """
    Guess a watering type from the plant's names and family.

    Returns:
        One of the SOIL_CHECKS keys; 'foliage' when nothing matches
    """
    haystack = " ".join(
        [plant.scientific_name, plant.nickname, plant.family] + list(plant.common_names)
    ).lower()
    for watering_type, keywords in WATERING_TYPE_KEYWORDS:
        if any(k in haystack for k in keywords):
            return watering_type
    return "foliage"


def get_soil_check(plant: Plant) -> str:
    return SOIL_CHECKS[infer_watering_type(plant)]


def get_seasonal_note(season: str) -> str:
    return SEASONAL_NOTES.get(season, "")


def auto_watering_frequency_days(plant: Plant, season: str) -> int:
    """
    Suggested days between waterings from plant type, light and season.

    Independent of the plant's configured frequency; clamped to
    MIN_AUTO_INTERVAL_DAYS..MAX_AUTO_INTERVAL_DAYS.
    """
    days = TYPE_BASELINE_DAYS[infer_watering_type(plant)]
    days += LIGHT_INTERVAL_DAYS.get(plant.light_level, 0)
    days += SEASON_INTERVAL_DAYS.get(season, 0)
    return max(MIN_AUTO_INTERVAL_DAYS, min(MAX_AUTO_INTERVAL_DAYS, days))


def _temperature_step(temp_f: float) -> Tuple[float, Optional[str]]:
    if temp_f >= TEMP_HOT_EXTREME_F:
        return 0.3, f"Very hot ({temp_f:.0f}°F)"
    if temp_f >= TEMP_HOT_F:
        return 0.2, f"Hot ({temp_f:.0f}°F)"
    if temp_f >= TEMP_WARM_F:
        return 0.1, f"Warm ({temp_f:.0f}°F)"
    if temp_f < TEMP_COOL_F:
        return -0.2, f"Cool ({temp_f:.0f}°F)"
    if temp_f < TEMP_MILD_LOW_F:
        return -0.1, f"Mild ({temp_f:.0f}°F)"
    return 0.0, None


def _humidity_step(humidity: Optional[float]) -> Tuple[float, Optional[str]]:
    if humidity is None:
        return 0.0, None
    if humidity < HUMIDITY_VERY_DRY:
        return 0.2, f"Very dry air ({humidity:.0f}%)"
    if humidity < HUMIDITY_DRY:
        return 0.1, f"Dry air ({humidity:.0f}%)"
    if humidity > HUMIDITY_VERY_HUMID:
        return -0.2, f"Very humid ({humidity:.0f}%)"
    if humidity > HUMIDITY_HUMID:
        return -0.1, f"Humid ({humidity:.0f}%)"
    return 0.0, None


def _precipitation_step(weather: WeatherSnapshot) -> Tuple[float, Optional[str]]:
    mm = weather.precipitation_mm or 0.0
    if mm >= PRECIP_HEAVY_MM:
        return -0.3, f"Heavy recent rain ({mm:g}mm)"
    if mm >= PRECIP_MODERATE_MM:
        return -0.2, f"Recent rain ({mm:g}mm)"
    if mm > 0 or weather.recent_precipitation:
        return -0.1, "Light recent rain"
    return 0.0, None


def _light_step(light_level: str) -> Tuple[float, Optional[str]]:
    if light_level in ("bright", "direct"):
        return 0.1, "Bright light dries soil faster"
    if light_level == "low":
        return -0.1, "Low light slows drying"
    return 0.0, None


def weather_multiplier(
    weather: WeatherSnapshot,
    light_level: str = "medium",
    min_multiplier: float = MIN_MULTIPLIER,
    max_multiplier: float = MAX_MULTIPLIER,
) -> Tuple[float, List[str]]:
    """
    Combine weather signals into a bounded watering multiplier.

    Returns:
        (multiplier, notes) where notes explain each non-zero step
    """
    total = 1.0
    notes: List[str] = []
    for step, note in (
        _temperature_step(weather.temperature_f),
        _humidity_step(weather.humidity),
        _precipitation_step(weather),
        _light_step(light_level),
    ):
        total += step
        if note:
            notes.append(note)

    multiplier = min(max_multiplier, max(min_multiplier, round(total, 2)))
    return multiplier, notes


def interval_adjustment(multiplier: float) -> int:
    if multiplier >= INTERVAL_SHORTEN_AT:
        return -1
    if multiplier <= INTERVAL_LENGTHEN_AT:
        return 1
    return 0


class CareRecommender:
    """
    Weather-adjusted watering recommendations.

    Args:
        weather_provider: Optional provider used when recommend() is not
            handed a snapshot
        location: Passed to the provider (None = provider default)
        min_multiplier / max_multiplier: Bounds on the weather factor
        clock: "Now" source for the seasonal note and interval
        latitude: Hemisphere for season lookup (negative = Southern)
    """

    def __init__(
        self,
        weather_provider: WeatherProvider | None = None,
        location: str | None = None,
        min_multiplier: float = MIN_MULTIPLIER,
        max_multiplier: float = MAX_MULTIPLIER,
        clock: Callable[[], datetime] = utc_now,
        latitude: float = 40.0,
    ):
        self.weather_provider = weather_provider
        self.location = location
        self.min_multiplier = min_multiplier
        self.max_multiplier = max_multiplier
        self.clock = clock
        self.latitude = latitude

    def current_weather(self) -> Optional[WeatherSnapshot]:
        return safe_current_conditions(self.weather_provider, self.location)

    def current_season(self) -> str:
        return get_season(self.clock(), self.latitude)

    def base_recommendation(self, plant: Plant) -> CareRecommendation:
        """Frequency-based recommendation with no weather applied."""
        season = self.current_season()
        return CareRecommendation(
            amount=plant.recommended_water_amount,
            unit=plant.water_unit,
            multiplier=1.0,
            interval_days=max(1, plant.watering_frequency_days),
            interval_adjustment_days=0,
            soil_check=get_soil_check(plant),
            technique=BASE_TECHNIQUE,
            season=season,
            seasonal_note=get_seasonal_note(season),
            seasonal_interval_days=auto_watering_frequency_days(plant, season),
        )

    def recommend(
        self,
        plant: Plant,
        weather: Optional[WeatherSnapshot] = None,
        fetch_weather: bool = True,
    ) -> CareRecommendation:
        """
        Recommend how much and how often to water ``plant``.

        Args:
            plant: Plant with a watering profile
            weather: Current conditions; when None and ``fetch_weather`` is
                set the provider is asked, and a failed lookup yields the
                base recommendation
            fetch_weather: False when the caller already looked weather up
                for this pass (``weather`` None then means "unavailable")

        Returns:
            CareRecommendation (never raises for weather problems)
        """
        if weather is None and fetch_weather:
            weather = self.current_weather()
        if weather is None:
            return self.base_recommendation(plant)

        multiplier, notes = weather_multiplier(
            weather, plant.light_level, self.min_multiplier, self.max_multiplier
        )
        adjustment = interval_adjustment(multiplier)

        technique = BASE_TECHNIQUE
        if multiplier > 1.2:
            technique += " Water more thoroughly due to hot/dry conditions."
        elif multiplier < 0.8:
            technique += " Water less due to cool/humid conditions."

        if multiplier != 1.0:
            logger.debug(f"[Recommender] {plant.display_name}: x{multiplier} ({', '.join(notes)})")

        season = self.current_season()
        return CareRecommendation(
            amount=plant.recommended_water_amount * multiplier,
            unit=plant.water_unit,
            multiplier=multiplier,
            interval_days=max(1, plant.watering_frequency_days + adjustment),
            interval_adjustment_days=adjustment,
            soil_check=get_soil_check(plant),
            technique=technique,
            weather_applied=True,
            weather_notes=tuple(notes),
            season=season,
            seasonal_note=get_seasonal_note(season),
            seasonal_interval_days=auto_watering_frequency_days(plant, season),
        )

    def recommend_fertilizer(self, plant: Plant) -> FertilizerRecommendation:
        return FertilizerRecommendation(
            amount=plant.recommended_fertilizer_amount,
            unit=plant.fertilizer_unit,
            frequency_days=max(1, plant.fertilizing_frequency_days),
        )
