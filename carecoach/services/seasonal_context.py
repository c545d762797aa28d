"""
Seasonal context: calendar-quarter season buckets and the guidance text
attached to each season.

Used by the analytics aggregator for seasonal rollups and by the API to
attach a short weather care message to recommendations.
"""

from datetime import datetime
from typing import List, Optional

from ..models import WeatherSnapshot

# Relative growth multiplier per season (spring flush, winter dormancy)
SEASON_GROWTH_BASELINE = {
    "spring": 1.2,
    "summer": 1.0,
    "fall": 0.7,
    "winter": 0.4,
}

# Applied to average health when rolling up per-season impact
SEASON_HEALTH_MODIFIERS = {
    "spring": 1.2,
    "summer": 1.0,
    "fall": 0.9,
    "winter": 0.8,
}

OPTIMAL_CONDITIONS = {
    "spring": ["Increase humidity", "Bright indirect light", "Resume fertilizing"],
    "summer": ["Consistent watering", "Monitor for pests", "Adequate ventilation"],
    "fall": ["Reduce watering", "Prepare for dormancy", "Check for drafts"],
    "winter": ["Lower temperatures", "Reduce fertilizing", "Increase humidity"],
}


def get_season(moment: datetime, latitude: float = 40.0) -> str:
    """
    Determine the season for a date and hemisphere.

    Args:
        moment: Date to bucket
        latitude: Positive = Northern, negative = Southern

    Returns:
        Season name: 'winter', 'spring', 'summer', 'fall'
    """
    month = moment.month

    # Northern Hemisphere seasons
    if month in (12, 1, 2):
        northern_season = "winter"
    elif month in (3, 4, 5):
        northern_season = "spring"
    elif month in (6, 7, 8):
        northern_season = "summer"
    else:  # 9, 10, 11
        northern_season = "fall"

    # Flip for Southern Hemisphere
    if latitude < 0:
        season_map = {
            "winter": "summer",
            "summer": "winter",
            "spring": "fall",
            "fall": "spring"
        }
        return season_map[northern_season]

    return northern_season


def get_optimal_conditions(season: str) -> List[str]:
    return list(OPTIMAL_CONDITIONS.get(season, []))


def get_seasonal_recommendations(season: str, plant_count: int) -> List[str]:
    """
    Seasonal care recommendations for a collection.

    Args:
        season: Season name
        plant_count: Number of plants in the collection; none means no advice

    Returns:
        List of recommendation strings
    """
    if plant_count <= 0:
        return []

    if season == "spring":
        repot = max(1, plant_count // 3)
        return [
            f"Repot {repot} plants that have outgrown containers",
            "Begin weekly fertilizing schedule",
            "Increase watering frequency by 20%",
        ]
    if season == "summer":
        return [
            "Monitor daily for pest activity",
            "Maintain consistent soil moisture",
            "Provide morning sunlight, afternoon shade",
        ]
    if season == "fall":
        return [
            "Gradually reduce watering frequency",
            "Stop fertilizing by October",
            "Move sensitive plants away from windows",
        ]
    if season == "winter":
        return [
            "Water only when soil is dry 2 inches down",
            "Increase humidity with pebble trays",
            "Rotate plants weekly for even light exposure",
        ]
    return []


def get_weather_care_message(weather: Optional[WeatherSnapshot]) -> Optional[str]:
    """One-line care message for the current weather, or None."""
    if weather is None:
        return None

    temp_f = weather.temperature_f
    if temp_f > 85:
        return "Hot weather - consider extra watering and humidity"
    if temp_f < 55:
        return "Cool weather - reduce watering frequency"

    description = (weather.conditions or "").lower()
    if "rain" in description or "drizzle" in description or "storm" in description:
        return "Rainy day - good time for indoor plant care"
    if "clear" in description or "sun" in description:
        return "Bright conditions - great for photosynthesis!"
    if "cloud" in description or "overcast" in description:
        return "Limited light - move plants closer to windows"
    return None
