"""
Unit tests for the OpenWeather provider (carecoach/services/weather.py).

The HTTP layer is a mocked requests.Session; no network calls are made.
"""

import pytest
import requests
from unittest.mock import MagicMock

from carecoach.services.weather import (
    OpenWeatherProvider,
    WeatherUnavailable,
    parse_current_weather,
    safe_current_conditions,
)
from tests.conftest import FakeWeather, NEUTRAL

SAMPLE_PAYLOAD = {
    "name": "Austin",
    "dt": 1718445600,
    "main": {"temp": 30.0, "humidity": 40},
    "weather": [{"id": 500, "main": "Rain", "description": "light rain"}],
    "rain": {"1h": 1.2},
}


def _session(payload=None, status_code=200, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
        return session
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else SAMPLE_PAYLOAD
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    session.get.return_value = response
    return session


class TestParseCurrentWeather:
    def test_parses_payload(self):
        snapshot = parse_current_weather(SAMPLE_PAYLOAD)

        assert snapshot.temperature_c == 30.0
        assert snapshot.temperature_f == 86.0
        assert snapshot.humidity == 40
        assert snapshot.precipitation_mm == 1.2
        assert snapshot.recent_precipitation is True
        assert snapshot.conditions == "light rain"
        assert snapshot.location == "Austin"
        assert snapshot.observed_at is not None

    def test_dry_clear_day(self):
        payload = {"main": {"temp": 22, "humidity": 55}, "weather": [{"main": "Clear", "description": "clear sky"}]}
        snapshot = parse_current_weather(payload, "Denver")

        assert snapshot.precipitation_mm == 0.0
        assert snapshot.recent_precipitation is False
        assert snapshot.location == "Denver"

    def test_missing_temperature_raises(self):
        with pytest.raises(WeatherUnavailable):
            parse_current_weather({"main": {}})


class TestOpenWeatherProvider:
    def test_city_query_is_normalized(self):
        session = _session()
        provider = OpenWeatherProvider(api_key="k", session=session)

        snapshot = provider.current_conditions("Austin, tx")

        assert snapshot.temperature_c == 30.0
        _, kwargs = session.get.call_args
        assert kwargs["params"]["q"] == "Austin, TX, US"
        assert kwargs["params"]["units"] == "metric"
        assert kwargs["timeout"] == 6

    def test_zip_query(self):
        session = _session()
        OpenWeatherProvider(api_key="k", session=session).current_conditions("78701")

        _, kwargs = session.get.call_args
        assert kwargs["params"]["zip"] == "78701,US"

    def test_results_cached_per_location(self):
        session = _session()
        provider = OpenWeatherProvider(api_key="k", session=session)

        provider.current_conditions("Austin")
        provider.current_conditions("austin")

        assert session.get.call_count == 1

    def test_clear_cache_forces_refetch(self):
        session = _session()
        provider = OpenWeatherProvider(api_key="k", session=session)

        provider.current_conditions("Austin")
        provider.clear_cache()
        provider.current_conditions("Austin")

        assert session.get.call_count == 2

    def test_default_location_used(self):
        session = _session()
        provider = OpenWeatherProvider(api_key="k", default_location="Austin", session=session)

        assert provider.current_conditions().location == "Austin"

    def test_timeout_raises_unavailable(self):
        provider = OpenWeatherProvider(api_key="k", session=_session(error=requests.Timeout("slow")))
        with pytest.raises(WeatherUnavailable):
            provider.current_conditions("Austin")

    def test_http_error_raises_unavailable(self):
        provider = OpenWeatherProvider(api_key="k", session=_session(status_code=500))
        with pytest.raises(WeatherUnavailable):
            provider.current_conditions("Austin")

    def test_failures_are_not_cached(self):
        session = _session(error=requests.ConnectionError("down"))
        provider = OpenWeatherProvider(api_key="k", session=session)

        for _ in range(2):
            with pytest.raises(WeatherUnavailable):
                provider.current_conditions("Austin")

        assert session.get.call_count == 2

    def test_missing_api_key(self):
        provider = OpenWeatherProvider(session=_session())
        with pytest.raises(WeatherUnavailable):
            provider.current_conditions("Austin")

    def test_missing_location(self):
        provider = OpenWeatherProvider(api_key="k", session=_session())
        with pytest.raises(WeatherUnavailable):
            provider.current_conditions()


class TestSafeCurrentConditions:
    def test_returns_snapshot(self):
        assert safe_current_conditions(FakeWeather(NEUTRAL)) == NEUTRAL

    def test_none_provider(self):
        assert safe_current_conditions(None) is None

    def test_failure_returns_none(self):
        assert safe_current_conditions(FakeWeather(error=requests.Timeout("slow"))) is None
