"""Derived views over already-loaded record collections.

Everything here is a pure function: inputs are never mutated and empty
collections are valid input. Records may be schema models or plain mappings;
fields are addressed by attribute name (``due_date``) and mappings may use
the camelCase wire key instead (``dueDate``).
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple

from pydantic.alias_generators import to_camel

from farmtrack.utils import is_pure_date, plain, to_aware_utc, to_date, to_decimal

UNKNOWN_FARM = "Unknown Farm"


def field_value(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        if field in record:
            return record[field]
        return record.get(to_camel(field))
    return getattr(record, field, None)


def record_id(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record.get("Id", record.get("id"))
    return getattr(record, "id", None)


def _today(now: Optional[datetime | date]) -> date:
    return to_date(now) if now is not None else datetime.now(timezone.utc).date()


# ---------- filters ----------

def filter_by_equality(records: Iterable[Any], predicates: Optional[Mapping[str, Any]]) -> List[Any]:
    """Keep records matching every predicate; None or "" means unconstrained."""
    active = {k: plain(v) for k, v in (predicates or {}).items() if v is not None and v != ""}
    return [r for r in records if all(plain(field_value(r, k)) == v for k, v in active.items())]


def filter_by_date_range(records: Iterable[Any], date_field: str, start=None, end=None) -> List[Any]:
    """Keep records whose `date_field` lies in [start, end]; a None bound is open."""
    lo, hi = to_date(start), to_date(end)
    out = []
    for r in records:
        d = to_date(field_value(r, date_field))
        if d is None:
            continue
        if lo is not None and d < lo:
            continue
        if hi is not None and d > hi:
            continue
        out.append(r)
    return out


def month_bounds(when: date | datetime | str | None = None) -> Tuple[date, date]:
    """First and last calendar day of the month containing `when`."""
    d = _today(when)
    last = calendar.monthrange(d.year, d.month)[1]
    return d.replace(day=1), d.replace(day=last)


def _due_at(record: Any, due_field: str = "due_date") -> Optional[datetime]:
    # a bare due date means midnight UTC of that day
    due = field_value(record, due_field)
    if due is None or due == "":
        return None
    return to_aware_utc(due)


def is_overdue(record: Any, due_field: str = "due_date", completed_field: str = "completed", now=None) -> bool:
    """Open and due strictly before `now`; a task due today is overdue once the day has begun."""
    if field_value(record, completed_field):
        return False
    due = _due_at(record, due_field)
    return due is not None and due < to_aware_utc(now)


def filter_tasks_by_status(tasks: Iterable[Any], status: Optional[str], now=None) -> List[Any]:
    if not status:
        return list(tasks)
    if status == "pending":
        return [t for t in tasks if not field_value(t, "completed")]
    if status == "completed":
        return [t for t in tasks if field_value(t, "completed")]
    if status == "overdue":
        return [t for t in tasks if is_overdue(t, now=now)]
    raise ValueError(f"Unknown task status filter: {status!r}")


# ---------- ordering ----------

def sort_tasks(tasks: Iterable[Any], now=None) -> List[Any]:
    """Overdue first, then other open tasks by due date, then completed ones."""
    now = to_aware_utc(now)
    latest = datetime.max.replace(tzinfo=timezone.utc)

    def key(t):
        if field_value(t, "completed"):
            return (2, latest)
        due = _due_at(t) or latest
        return (0 if due < now else 1, due)

    return sorted(tasks, key=key)


def sort_expenses_by_date_descending(expenses: Iterable[Any]) -> List[Any]:
    return sorted(expenses, key=lambda e: to_date(field_value(e, "date")) or date.min, reverse=True)


# ---------- aggregates ----------

def sum_amounts(records: Iterable[Any], amount_field: str = "amount") -> Decimal:
    return sum((to_decimal(field_value(r, amount_field) or 0) for r in records), Decimal(0))


def average_amount(records: Iterable[Any], amount_field: str = "amount") -> Decimal:
    records = list(records)
    if not records:
        return Decimal(0)
    return sum_amounts(records, amount_field) / len(records)


def group_totals(records: Iterable[Any], group_field: str, amount_field: str = "amount") -> Dict[Hashable, Decimal]:
    """Sum of `amount_field` per distinct `group_field`, in first-seen order."""
    totals: Dict[Hashable, Decimal] = {}
    for r in records:
        group = plain(field_value(r, group_field))
        totals[group] = totals.get(group, Decimal(0)) + to_decimal(field_value(r, amount_field) or 0)
    return totals


def top_group(totals: Mapping[Hashable, Any]) -> Optional[Hashable]:
    """Key with the largest total; the first one wins a tie; None when empty."""
    best_key, best = None, None
    for k, v in totals.items():
        if best is None or v > best:
            best_key, best = k, v
    return best_key


def count_by_predicate(records: Iterable[Any], predicate: Callable[[Any], bool]) -> int:
    return sum(1 for r in records if predicate(r))


def days_between(a, b) -> int:
    """Whole days in `a - b`, truncated toward zero."""
    if is_pure_date(a) and is_pure_date(b):
        return (a - b).days
    delta = to_aware_utc(a) - to_aware_utc(b)
    return int(delta.total_seconds() / 86400)


# ---------- joins ----------

def farm_name(farms: Iterable[Any], farm_id: Any) -> str:
    """Resolve a weak farm reference; dangling ids read as "Unknown Farm"."""
    for f in farms:
        if farm_id is not None and str(record_id(f)) == str(farm_id):
            return field_value(f, "name") or UNKNOWN_FARM
    return UNKNOWN_FARM
