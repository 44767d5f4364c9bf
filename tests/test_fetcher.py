"""Tests for the multi-source fetcher."""

import httpx
import pytest

from ecoops.collectors.base import FetchParams, SourceAdapter
from ecoops.collectors.openweather import OpenWeatherAdapter, fallback_weather
from ecoops.collectors.utility import UtilityAdapter, fallback_utility
from ecoops.config import Settings
from ecoops.errors import UpstreamError
from ecoops.fetcher import MultiSourceFetcher, merge_results
from ecoops.models import Fallback, Ok, UtilitySnapshot, WeatherSnapshot

REAL_WEATHER = WeatherSnapshot(temperature=22, humidity=40, description="clear sky", timestamp="2026-01-10T12:00:00+00:00")
REAL_UTILITY = UtilitySnapshot(cost_per_kwh=0.3, total_kwh=100, total_cost=30.0, period="2026-01")


class FakeAdapter(SourceAdapter):
    """Adapter returning a fixed snapshot or raising a fixed error."""

    def __init__(self, name, slot, snapshot=None, error=None):
        super().__init__()
        self.name = name
        self.slot = slot
        self.snapshot = snapshot
        self.error = error
        self.calls = 0

    @property
    def fallback(self):
        return fallback_weather() if self.slot == "weather" else fallback_utility()

    def fetch(self, params):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.snapshot


def weather_ok():
    return FakeAdapter("openweather", "weather", snapshot=REAL_WEATHER)


def utility_ok():
    return FakeAdapter("utility_api", "utility", snapshot=REAL_UTILITY)


def test_all_sources_succeed():
    fetcher = MultiSourceFetcher([weather_ok(), utility_ok()])

    bundle = fetcher.fetch(FetchParams(period="2026-01"))

    assert bundle.weather == REAL_WEATHER
    assert bundle.utility == REAL_UTILITY
    assert bundle.used_fallback is False
    assert bundle.synced_at


def test_weather_fails_utility_succeeds():
    """One dead upstream does not affect the other's result."""
    weather = FakeAdapter("openweather", "weather", error=UpstreamError("openweather", "HTTP 503"))
    utility = utility_ok()
    fetcher = MultiSourceFetcher([weather, utility])

    bundle = fetcher.fetch()

    assert bundle.utility == REAL_UTILITY
    assert bundle.weather.temperature == 18
    assert bundle.weather.description == "Partly cloudy"
    assert bundle.used_fallback is True
    assert utility.calls == 1


def test_unexpected_adapter_exception_is_isolated():
    weather = weather_ok()
    utility = FakeAdapter("utility_api", "utility", error=RuntimeError("boom"))

    bundle = MultiSourceFetcher([weather, utility]).fetch()

    assert bundle.weather == REAL_WEATHER
    assert bundle.utility == fallback_utility()
    assert bundle.used_fallback is True


def test_missing_weather_key_falls_back():
    fetcher = MultiSourceFetcher([OpenWeatherAdapter(None), utility_ok()])

    bundle = fetcher.fetch()

    assert bundle.weather.temperature == 18
    assert bundle.utility == REAL_UTILITY
    assert bundle.used_fallback is True


def test_unconfigured_utility_marks_fallback():
    bundle = MultiSourceFetcher([weather_ok(), UtilityAdapter(None)]).fetch()

    assert bundle.weather == REAL_WEATHER
    assert bundle.utility == fallback_utility()
    assert bundle.used_fallback is True


def test_unknown_source_is_skipped():
    weather = weather_ok()
    fetcher = MultiSourceFetcher([weather, utility_ok()], sources=["openweather", "tide_tables"])

    bundle = fetcher.fetch()

    assert bundle.weather == REAL_WEATHER
    # utility_api was never configured, so it gets its fallback without degrading the bundle
    assert bundle.utility == fallback_utility()
    assert bundle.used_fallback is False


@pytest.mark.parametrize("sources", [[], ["openweather"], ["utility_api"], ["nope"]])
def test_bundle_always_has_both_slots(sources):
    bundle = MultiSourceFetcher([weather_ok(), utility_ok()]).fetch(sources=sources)

    assert bundle.weather is not None
    assert bundle.utility is not None


def test_sources_run_in_configured_order():
    order = []

    class Recording(FakeAdapter):
        def fetch(self, params):
            order.append(self.name)
            return super().fetch(params)

    fetcher = MultiSourceFetcher(
        [
            Recording("openweather", "weather", snapshot=REAL_WEATHER),
            Recording("utility_api", "utility", snapshot=REAL_UTILITY),
        ],
        sources=["utility_api", "openweather"],
    )
    fetcher.fetch()

    assert order == ["utility_api", "openweather"]


def test_mock_mode_makes_no_calls():
    weather = weather_ok()
    utility = utility_ok()

    bundle = MultiSourceFetcher([weather, utility], use_mock_data=True).fetch()

    assert weather.calls == 0
    assert utility.calls == 0
    assert bundle.used_fallback is True
    assert bundle.utility == fallback_utility()


def test_merge_results():
    results = {
        "weather": Ok(REAL_WEATHER),
        "utility": Fallback(fallback_utility(), "HTTP 500"),
    }

    bundle = merge_results(results, synced_at="2026-01-10T12:00:00+00:00")

    assert bundle.weather == REAL_WEATHER
    assert bundle.utility == fallback_utility()
    assert bundle.used_fallback is True
    assert bundle.synced_at == "2026-01-10T12:00:00+00:00"


def test_merge_results_empty():
    bundle = merge_results({})

    assert bundle.weather.temperature == 18
    assert bundle.utility.total_cost == 187.5
    assert bundle.used_fallback is False


def test_from_settings_over_http():
    """End to end through real adapters with a fake transport."""

    def handler(request):
        if request.url.host == "api.openweathermap.org":
            return httpx.Response(200, json={"main": {"temp": 11.2, "humidity": 80}, "weather": [{"description": "mist"}]})
        return httpx.Response(503)

    settings = Settings(
        use_mock_data=False,
        openweather_api_key="key",
        utility_api_url="https://billing.example.com/usage",
    )
    client = httpx.Client(transport=httpx.MockTransport(handler))

    with MultiSourceFetcher.from_settings(settings, client) as fetcher:
        bundle = fetcher.fetch(FetchParams(location="London,UK", period="2026-01"))

    assert bundle.weather.temperature == 11
    assert bundle.weather.description == "mist"
    assert bundle.utility == fallback_utility()
    assert bundle.used_fallback is True
    assert bundle.to_dict()["mock"] is True
