"""
Forecast feed with a time-to-live cache in front of it.

The cache is either empty or holds one snapshot plus the moment it was
fetched. A snapshot younger than the TTL is served as-is; anything else goes
back to the provider. Provider failures leave the cache untouched.
"""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol, Tuple

import pydantic

from farmtrack.errors import ProviderError
from farmtrack.schemas import DayForecast, WeatherCondition, WeatherInsight
from farmtrack.utils import to_aware_utc

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

DEFAULT_TTL = timedelta(minutes=30)


class ForecastProvider(Protocol):
    def fetch(self) -> List[DayForecast]:
        """Return the upcoming days, today first."""
        ...


class StaticForecastProvider(ForecastProvider):
    """Serves a fixed feed of day dicts (or DayForecast models)."""

    def __init__(self, days: Iterable[Mapping[str, Any] | DayForecast]):
        self._days = list(days)

    def fetch(self) -> List[DayForecast]:
        try:
            return [DayForecast.model_validate(d) for d in self._days]
        except pydantic.ValidationError as e:
            raise ProviderError(f"Malformed forecast feed: {e.error_count()} error(s)") from e


_SAMPLE_WEEK = [
    # condition, high, low, precipitation, humidity
    (WeatherCondition.sunny, 78, 58, 0, 45),
    (WeatherCondition.partly_cloudy, 75, 57, 10, 52),
    (WeatherCondition.rainy, 68, 55, 80, 85),
    (WeatherCondition.cloudy, 70, 54, 30, 70),
    (WeatherCondition.sunny, 82, 60, 5, 40),
    (WeatherCondition.stormy, 72, 59, 90, 88),
    (WeatherCondition.sunny, 80, 61, 0, 42),
]


def sample_forecast(start: date | None = None, days: int = 5) -> List[dict]:
    """Deterministic demo feed starting at `start` (today by default)."""
    start = start or datetime.now(timezone.utc).date()
    out = []
    for i in range(days):
        condition, high, low, precip, humidity = _SAMPLE_WEEK[i % len(_SAMPLE_WEEK)]
        out.append({
            "date": (start + timedelta(days=i)).isoformat(),
            "condition": condition.value,
            "temperature": {"high": high, "low": low},
            "precipitation": precip,
            "humidity": humidity,
        })
    return out


class SampleForecastProvider(ForecastProvider):
    """The demo feed, re-dated so it always starts on the current day."""

    def __init__(self, days: int = 5, *, clock: Clock | None = None):
        self._days = days
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def fetch(self) -> List[DayForecast]:
        start = to_aware_utc(self._clock()).date()
        return StaticForecastProvider(sample_forecast(start, self._days)).fetch()


class ForecastCache:
    def __init__(self, provider: ForecastProvider, *, ttl: timedelta = DEFAULT_TTL, clock: Clock | None = None):
        self._provider = provider
        self.ttl = ttl
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        # None while empty, else (snapshot, fetched_at); swapped as one reference
        self._state: Optional[Tuple[List[DayForecast], datetime]] = None
        self._lock = threading.Lock()

    @property
    def fetched_at(self) -> Optional[datetime]:
        state = self._state
        return state[1] if state else None

    def _fresh(self, state, now: datetime) -> bool:
        return state is not None and now - state[1] < self.ttl

    def get_forecast(self, now: datetime | None = None) -> List[DayForecast]:
        now = to_aware_utc(now) if now is not None else to_aware_utc(self._clock())
        state = self._state
        if self._fresh(state, now):
            logger.debug(f"Forecast cache HIT (age {now - state[1]})")
            return [d.model_copy(deep=True) for d in state[0]]

        with self._lock:
            # another caller may have refreshed while we waited
            state = self._state
            if not self._fresh(state, now):
                logger.debug("Forecast cache MISS; calling provider")
                snapshot = self._fetch()
                state = (snapshot, now)
                self._state = state
        return [d.model_copy(deep=True) for d in state[0]]

    def _fetch(self) -> List[DayForecast]:
        try:
            return [DayForecast.model_validate(d) for d in self._provider.fetch()]
        except ProviderError:
            logger.error("Forecast provider failed", exc_info=True)
            raise
        except Exception as e:
            logger.error(f"Forecast provider failed: {e}", exc_info=True)
            raise ProviderError(f"Forecast provider failed: {e}") from e

    def get_current_weather(self, now: datetime | None = None) -> Optional[DayForecast]:
        forecast = self.get_forecast(now)
        return forecast[0] if forecast else None

    def invalidate(self) -> None:
        with self._lock:
            self._state = None


def weather_insights(forecast: List[DayForecast]) -> List[WeatherInsight]:
    """Planning hints for the forecast window (temperatures in °F)."""
    if not forecast:
        return []

    insights: List[WeatherInsight] = []

    rainy_days = sum(1 for d in forecast if d.precipitation > 50)
    if rainy_days >= 3:
        insights.append(WeatherInsight(
            icon="CloudRain",
            type="warning",
            title="Heavy Rain Expected",
            description=f"{rainy_days} days of rain forecasted. Consider delaying outdoor planting activities.",
        ))
    elif rainy_days >= 1:
        insights.append(WeatherInsight(
            icon="Droplets",
            type="info",
            title="Rain Opportunity",
            description=f"{rainy_days} rainy day(s) ahead. Good for recently planted crops.",
        ))

    hot_days = sum(1 for d in forecast if d.temperature.high >= 85)
    if hot_days >= 3:
        insights.append(WeatherInsight(
            icon="Thermometer",
            type="warning",
            title="Hot Weather Alert",
            description=f"{hot_days} days above 85°F. Increase watering frequency and check for heat stress.",
        ))

    sunny_days = sum(1 for d in forecast if d.condition == WeatherCondition.sunny)
    if sunny_days >= 3:
        insights.append(WeatherInsight(
            icon="Sun",
            type="success",
            title="Ideal Harvest Conditions",
            description=f"{sunny_days} sunny days ahead. Perfect for harvesting and drying crops.",
        ))

    dry_days = sum(1 for d in forecast if d.precipitation < 10)
    if dry_days >= 4:
        insights.append(WeatherInsight(
            icon="AlertTriangle",
            type="warning",
            title="Dry Period Ahead",
            description=f"{dry_days} days with minimal rain. Plan irrigation accordingly.",
        ))

    return insights
