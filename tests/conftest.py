"""
Shared pytest fixtures.

Every test uses a fixed clock (NOW) so date arithmetic is deterministic,
and weather is either absent or a fake provider.
"""

import pytest
from datetime import datetime, timedelta, timezone

from carecoach.models import CareEvent, CareType, HealthStatus, Plant, WeatherSnapshot
from carecoach.services.care_store import InMemoryCareStore
from carecoach.services.weather import WeatherProvider, WeatherUnavailable

# Saturday mid-morning, northern summer
NOW = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)


def days_ago(n: float) -> datetime:
    return NOW - timedelta(days=n)


def make_plant(**overrides) -> Plant:
    defaults = {
        "nickname": "Monty",
        "scientific_name": "Monstera deliciosa",
        "location": "Living Room",
        "watering_frequency_days": 7,
        "fertilizing_frequency_days": 30,
        "recommended_water_amount": 250.0,
        "water_unit": "ml",
        "recommended_fertilizer_amount": 5.0,
        "fertilizer_unit": "ml",
        "last_watered": days_ago(1),
        "last_fertilized": days_ago(1),
        "health_status": HealthStatus.HEALTHY,
    }
    defaults.update(overrides)
    return Plant(**defaults)


def make_event(plant: Plant, when: datetime, care_type: CareType = CareType.WATERING) -> CareEvent:
    return CareEvent(plant_id=plant.id, care_type=care_type, timestamp=when)


class FakeWeather(WeatherProvider):
    """Returns a fixed snapshot (or raises) and counts calls."""

    def __init__(self, snapshot=None, error=None):
        self.snapshot = snapshot
        self.error = error
        self.calls = 0

    def current_conditions(self, location=None):
        self.calls += 1
        if self.error is not None:
            raise self.error
        if self.snapshot is None:
            raise WeatherUnavailable("no data")
        return self.snapshot


HOT_DRY = WeatherSnapshot(temperature_c=35.0, humidity=20, conditions="clear sky")  # 95°F
NEUTRAL = WeatherSnapshot(temperature_c=20.0, humidity=50, conditions="few clouds")  # 68°F


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fixed_clock():
    return lambda: NOW


@pytest.fixture
def store():
    overdue = make_plant(id="p-overdue", nickname="Fern Gully", scientific_name="Nephrolepis exaltata",
                         last_watered=days_ago(10))
    happy = make_plant(id="p-happy", nickname="Spike", scientific_name="Echeveria elegans",
                       location="Kitchen", last_watered=days_ago(2))
    return InMemoryCareStore(plants=[overdue, happy])


@pytest.fixture
def app(monkeypatch, store, fixed_clock):
    monkeypatch.setenv("APP_CONFIG", "carecoach.config.TestConfig")
    from carecoach import create_app
    return create_app(store=store, clock=fixed_clock)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ajax_headers():
    return {"X-Requested-With": "XMLHttpRequest"}
