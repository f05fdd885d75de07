# farmtrack/summary.py
from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Iterable, List, Optional, Sequence

from farmtrack import schemas, views
from farmtrack.forecast import ForecastCache
from farmtrack.store import Stores
from farmtrack.utils import plain, quantize_cents, to_date

Clock = Callable[[], datetime]

UPCOMING_TASK_LIMIT = 5


def _is_active_crop(crop) -> bool:
    return plain(views.field_value(crop, "status")) != schemas.CropStatus.harvested.value


def task_counts(tasks: Sequence, now=None) -> schemas.TaskCounts:
    return schemas.TaskCounts(
        pending=views.count_by_predicate(tasks, lambda t: not views.field_value(t, "completed")),
        completed=views.count_by_predicate(tasks, lambda t: bool(views.field_value(t, "completed"))),
        overdue=views.count_by_predicate(tasks, lambda t: views.is_overdue(t, now=now)),
    )


def monthly_expenses(expenses: Iterable, when=None):
    start, end = views.month_bounds(when)
    return views.sum_amounts(views.filter_by_date_range(expenses, "date", start, end))


def upcoming_tasks(tasks: Iterable, limit: int = UPCOMING_TASK_LIMIT) -> List:
    """Earliest-due open tasks."""
    pending = [t for t in tasks if not views.field_value(t, "completed")]
    return sorted(pending, key=lambda t: to_date(views.field_value(t, "due_date")) or date.max)[:limit]


def expense_summary(expenses: Sequence) -> schemas.ExpenseSummary:
    totals = views.group_totals(expenses, "category")
    top = views.top_group(totals)
    return schemas.ExpenseSummary(
        total=views.sum_amounts(expenses),
        count=len(expenses),
        average=quantize_cents(views.average_amount(expenses)),
        category_totals={str(k): v for k, v in totals.items()},
        top_category=None if top is None else str(top),
    )


def crop_timeline(crop, today=None) -> schemas.CropTimeline:
    """Days since planting; for crops still in the ground, days to harvest."""
    today = to_date(today) or datetime.now(timezone.utc).date()
    planted = to_date(views.field_value(crop, "planting_date"))
    harvest = to_date(views.field_value(crop, "expected_harvest"))
    until_harvest = None
    if _is_active_crop(crop) and harvest is not None:
        until_harvest = views.days_between(harvest, today)
    return schemas.CropTimeline(
        crop_id=views.record_id(crop),
        days_since_planting=views.days_between(today, planted),
        days_until_harvest=until_harvest,
        harvest_overdue=until_harvest is not None and until_harvest < 0,
    )


def farm_overview(farm, crops: Iterable, tasks: Iterable) -> schemas.FarmOverview:
    farm_id = views.record_id(farm)
    return schemas.FarmOverview(
        farm_id=farm_id,
        name=views.field_value(farm, "name"),
        location=views.field_value(farm, "location"),
        crop_count=len(views.filter_by_equality(crops, {"farm_id": farm_id})),
        pending_tasks=len([
            t for t in views.filter_by_equality(tasks, {"farm_id": farm_id})
            if not views.field_value(t, "completed")
        ]),
    )


def dashboard_stats(farms: Sequence, crops: Sequence, tasks: Sequence, expenses: Sequence, now=None) -> schemas.DashboardStats:
    return schemas.DashboardStats(
        active_farms=len(farms),
        active_crops=views.count_by_predicate(crops, _is_active_crop),
        pending_tasks=views.count_by_predicate(tasks, lambda t: not views.field_value(t, "completed")),
        overdue_tasks=views.count_by_predicate(tasks, lambda t: views.is_overdue(t, now=now)),
        monthly_expenses=monthly_expenses(expenses, now),
    )


class DashboardService:
    def __init__(self, stores: Stores, forecast: Optional[ForecastCache] = None, *, clock: Clock | None = None):
        # DI
        self._stores = stores
        self._forecast = forecast
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build(self) -> schemas.Dashboard:
        now = self._clock()
        farms = self._stores.farms.get_all()
        crops = self._stores.crops.get_all()
        tasks = self._stores.tasks.get_all()
        expenses = self._stores.expenses.get_all()
        today_weather = self._forecast.get_current_weather(now) if self._forecast else None

        return schemas.Dashboard(
            stats=dashboard_stats(farms, crops, tasks, expenses, now),
            upcoming_tasks=upcoming_tasks(tasks),
            today_weather=today_weather,
            farms=[farm_overview(f, crops, tasks) for f in farms],
        )
