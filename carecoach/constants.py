"""
Shared constants used across the application.

Values here are referenced by the models, the services and the API layer,
so they stay consistent between payload validation and computation.
"""

# Light level options for plants
LIGHT_LEVELS = [
    ('low', 'Low light (north-facing, no direct sun)'),
    ('medium', 'Medium light (east/west-facing, some direct sun)'),
    ('bright', 'Bright indirect light'),
    ('direct', 'Direct sunlight (south-facing)'),
]

# Care types a user can log against a plant
CARE_TYPES = [
    ('watering', 'Watering'),
    ('fertilizing', 'Fertilizing'),
    ('other', 'Other care'),
]

# Health statuses, best first
HEALTH_STATUSES = [
    ('excellent', 'Excellent'),
    ('healthy', 'Healthy'),
    ('fair', 'Fair'),
    ('poor', 'Poor'),
    ('critical', 'Critical'),
]

# Display contexts that coach suggestions are filtered by
SUGGESTION_SURFACES = [
    ('today', 'Today'),
    ('plant_detail', 'Plant detail'),
    ('analytics', 'Analytics'),
]

SEASONS = ("spring", "summer", "fall", "winter")

UNKNOWN_LOCATION = "Unknown Location"

# Defaults for a new plant's care profile
DEFAULT_WATERING_FREQUENCY_DAYS = 7
DEFAULT_FERTILIZING_FREQUENCY_DAYS = 30
DEFAULT_WATER_AMOUNT = 250.0
DEFAULT_WATER_UNIT = "ml"
DEFAULT_FERTILIZER_AMOUNT = 5.0
DEFAULT_FERTILIZER_UNIT = "ml"
DEFAULT_HUMIDITY_PREFERENCE = 50
DEFAULT_TEMPERATURE_RANGE_F = (65, 80)
