from datetime import date, timedelta

import pytest

from farmtrack.errors import ProviderError
from farmtrack.forecast import (
    ForecastCache,
    SampleForecastProvider,
    StaticForecastProvider,
    sample_forecast,
    weather_insights,
)
from farmtrack.schemas import DayForecast, WeatherCondition


def day(i, condition="sunny", high=75, low=55, precipitation=0, humidity=40):
    return {
        "date": (date(2025, 6, 15) + timedelta(days=i)).isoformat(),
        "condition": condition,
        "temperature": {"high": high, "low": low},
        "precipitation": precipitation,
        "humidity": humidity,
    }


class CountingProvider:
    def __init__(self, days):
        self.days = days
        self.calls = 0
        self.fail_with = None

    def fetch(self):
        self.calls += 1
        if self.fail_with:
            raise self.fail_with
        return [DayForecast.model_validate(d) for d in self.days]


@pytest.fixture
def provider():
    return CountingProvider([day(0), day(1, "rainy", precipitation=80)])


def test_two_calls_within_ttl_hit_provider_once(provider, clock):
    cache = ForecastCache(provider, clock=clock)

    first = cache.get_forecast()
    clock.advance(minutes=29, seconds=59)
    second = cache.get_forecast()

    assert provider.calls == 1
    assert first == second
    assert second[1].condition == WeatherCondition.rainy


def test_call_after_ttl_refetches(provider, clock):
    cache = ForecastCache(provider, clock=clock)

    cache.get_forecast()
    clock.advance(minutes=30)
    cache.get_forecast()

    assert provider.calls == 2
    assert cache.fetched_at == clock()


def test_explicit_now_overrides_clock(provider, clock):
    cache = ForecastCache(provider, clock=clock, ttl=timedelta(minutes=5))
    start = clock()

    cache.get_forecast(start)
    cache.get_forecast(start + timedelta(minutes=4))
    assert provider.calls == 1
    cache.get_forecast(start + timedelta(minutes=5))
    assert provider.calls == 2


def test_returned_snapshot_is_a_copy(provider, clock):
    cache = ForecastCache(provider, clock=clock)

    got = cache.get_forecast()
    got[0].temperature.high = -40
    got.clear()

    again = cache.get_forecast()
    assert len(again) == 2
    assert again[0].temperature.high == 75


def test_provider_failure_propagates_and_keeps_cached_snapshot(provider, clock):
    cache = ForecastCache(provider, clock=clock)
    cached = cache.get_forecast()

    clock.advance(minutes=31)
    provider.fail_with = RuntimeError("upstream timeout")
    with pytest.raises(ProviderError):
        cache.get_forecast()

    # the old snapshot is still what the cache holds; an earlier `now` sees it as fresh
    fetched_at = cache.fetched_at
    assert cache.get_forecast(fetched_at + timedelta(minutes=1)) == cached
    assert provider.calls == 2


def test_failure_on_empty_cache_leaves_it_empty(provider, clock):
    provider.fail_with = ProviderError("no feed")
    cache = ForecastCache(provider, clock=clock)

    with pytest.raises(ProviderError, match="no feed"):
        cache.get_forecast()

    assert cache.fetched_at is None
    provider.fail_with = None
    assert len(cache.get_forecast()) == 2


def test_invalidate_forces_refetch(provider, clock):
    cache = ForecastCache(provider, clock=clock)
    cache.get_forecast()

    cache.invalidate()
    cache.get_forecast()

    assert provider.calls == 2


def test_current_weather_is_first_day(provider, clock):
    cache = ForecastCache(provider, clock=clock)

    assert cache.get_current_weather().date == date(2025, 6, 15)
    assert ForecastCache(CountingProvider([]), clock=clock).get_current_weather() is None


def test_static_provider_rejects_malformed_feed():
    bad = StaticForecastProvider([{**day(0), "precipitation": 150}])

    with pytest.raises(ProviderError):
        bad.fetch()


def test_sample_provider_starts_today(clock):
    days = SampleForecastProvider(5, clock=clock).fetch()

    assert len(days) == 5
    assert days[0].date == clock().date()
    assert [d.date for d in days] == [clock().date() + timedelta(days=i) for i in range(5)]


def test_sample_forecast_is_valid_feed():
    feed = sample_forecast(date(2025, 1, 1), days=9)

    assert len(StaticForecastProvider(feed).fetch()) == 9


def test_weather_insights_heavy_rain_and_heat():
    forecast = [DayForecast.model_validate(day(i, "rainy", high=90, precipitation=70)) for i in range(3)]

    titles = [i.title for i in weather_insights(forecast)]

    assert titles == ["Heavy Rain Expected", "Hot Weather Alert"]


def test_weather_insights_light_rain_sun_and_dry_spell():
    forecast = [DayForecast.model_validate(d) for d in [
        day(0), day(1), day(2), day(3, "partly_cloudy", precipitation=5), day(4, "rainy", precipitation=60),
    ]]

    insights = weather_insights(forecast)

    assert [(i.type, i.title) for i in insights] == [
        ("info", "Rain Opportunity"),
        ("success", "Ideal Harvest Conditions"),
        ("warning", "Dry Period Ahead"),
    ]
    assert insights[0].description.startswith("1 rainy day(s)")


def test_weather_insights_empty_forecast():
    assert weather_insights([]) == []
