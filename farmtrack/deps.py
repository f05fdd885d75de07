# farmtrack/deps.py
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import Depends

from farmtrack.config import get_settings
from farmtrack.db import SessionLocal
from farmtrack.forecast import ForecastCache, SampleForecastProvider
from farmtrack.medium import PersistedMedium, SqlMedium
from farmtrack.sample import SAMPLE_DATA
from farmtrack.store import EntityStore, Stores, TaskStore, build_stores
from farmtrack.summary import Clock, DashboardService


def get_clock() -> Clock:
    return lambda: datetime.now(timezone.utc)


@lru_cache
def get_medium() -> PersistedMedium:
    return SqlMedium(SessionLocal)


# one store per kind for the whole process, so each kind has a single write lock
@lru_cache
def get_stores() -> Stores:
    seed = SAMPLE_DATA if get_settings().seed_sample_data else None
    return build_stores(get_medium(), seed=seed)


@lru_cache
def get_forecast_cache() -> ForecastCache:
    settings = get_settings()
    return ForecastCache(
        SampleForecastProvider(settings.forecast_days),
        ttl=timedelta(minutes=settings.forecast_ttl_minutes),
    )


def get_farm_store(stores: Stores = Depends(get_stores)) -> EntityStore:
    return stores.farms


def get_crop_store(stores: Stores = Depends(get_stores)) -> EntityStore:
    return stores.crops


def get_task_store(stores: Stores = Depends(get_stores)) -> TaskStore:
    return stores.tasks


def get_expense_store(stores: Stores = Depends(get_stores)) -> EntityStore:
    return stores.expenses


def get_dashboard_service(
    stores: Stores = Depends(get_stores),
    forecast: ForecastCache = Depends(get_forecast_cache),
    clock: Clock = Depends(get_clock),
) -> DashboardService:
    return DashboardService(stores, forecast, clock=clock)
