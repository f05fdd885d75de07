from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from farmtrack import schemas, views


UTC = timezone.utc
NOW = datetime(2025, 6, 15, 9, 0, tzinfo=UTC)
TODAY = NOW.date()


def task(Id, due_offset_days, completed=False, **extra):
    return {
        "Id": Id,
        "farmId": 1,
        "title": f"task {Id}",
        "dueDate": (TODAY + timedelta(days=due_offset_days)).isoformat(),
        "completed": completed,
        **extra,
    }


def expense(Id, category, amount, day="2025-06-01", farm_id=1):
    return {"Id": Id, "farmId": farm_id, "category": category, "amount": amount, "date": day, "description": "x"}


def test_field_value_reads_models_and_camel_case_mappings():
    t = schemas.Task(Id=1, createdAt=NOW, farmId=1, title="a", dueDate="2025-06-01")

    assert views.field_value(t, "due_date") == date(2025, 6, 1)
    assert views.field_value({"dueDate": "2025-06-01"}, "due_date") == "2025-06-01"
    assert views.field_value({"due_date": "x"}, "due_date") == "x"


def test_filter_by_equality_ignores_empty_predicates():
    records = [expense(1, "seeds", 10), expense(2, "fuel", 5, farm_id=2), expense(3, "seeds", 1, farm_id=2)]

    assert views.filter_by_equality(records, {"farm_id": 2, "category": ""}) == records[1:]
    assert views.filter_by_equality(records, {"category": schemas.ExpenseCategory.seeds, "farm_id": None}) == [records[0], records[2]]
    assert views.filter_by_equality(records, None) == records
    assert views.filter_by_equality([], {"farm_id": 1}) == []


def test_filter_by_date_range_is_inclusive():
    records = [expense(1, "seeds", 1, "2025-05-31"), expense(2, "seeds", 1, "2025-06-01"),
               expense(3, "seeds", 1, "2025-06-30"), expense(4, "seeds", 1, "2025-07-01")]

    kept = views.filter_by_date_range(records, "date", date(2025, 6, 1), date(2025, 6, 30))

    assert [r["Id"] for r in kept] == [2, 3]
    assert [r["Id"] for r in views.filter_by_date_range(records, "date", None, "2025-06-01")] == [1, 2]


def test_month_bounds():
    assert views.month_bounds(date(2024, 2, 10)) == (date(2024, 2, 1), date(2024, 2, 29))
    assert views.month_bounds("2025-12-31T23:00:00Z") == (date(2025, 12, 1), date(2025, 12, 31))


def test_is_overdue():
    assert views.is_overdue(task(1, -1), now=NOW) is True
    assert views.is_overdue(task(2, +1), now=NOW) is False
    assert views.is_overdue(task(3, -5, completed=True), now=NOW) is False
    assert views.is_overdue({"deadline": "2025-01-01", "done": False}, "deadline", "done", NOW) is True


def test_task_due_today_is_overdue_once_the_day_has_begun():
    due_today = task(1, 0)

    assert views.is_overdue(due_today, now=NOW) is True
    assert views.is_overdue(due_today, now=datetime(2025, 6, 15, 0, 0, tzinfo=UTC)) is False
    assert views.is_overdue({**due_today, "dueDate": "2025-06-15T18:00:00Z"}, now=NOW) is False


def test_task_due_today_sorts_and_filters_with_the_overdue_group():
    tasks = [task(1, +1), task(2, 0), task(3, -2)]

    assert [t["Id"] for t in views.sort_tasks(tasks, NOW)] == [3, 2, 1]
    assert [t["Id"] for t in views.filter_tasks_by_status(tasks, "overdue", NOW)] == [2, 3]


def test_sort_tasks_puts_overdue_first_and_completed_last():
    tasks = [task(1, +1), task(2, -1), task(3, -5, completed=True)]

    ordered = views.sort_tasks(tasks, NOW)

    assert [t["Id"] for t in ordered] == [2, 1, 3]
    assert [t["Id"] for t in tasks] == [1, 2, 3]


def test_sort_tasks_orders_each_group_by_due_date_and_keeps_completed_stable():
    tasks = [task(1, +3), task(2, -2), task(3, 0, completed=True), task(4, -4),
             task(5, +1), task(6, -9, completed=True)]

    assert [t["Id"] for t in views.sort_tasks(tasks, NOW)] == [4, 2, 5, 1, 3, 6]


def test_filter_tasks_by_status():
    tasks = [task(1, -1), task(2, +2), task(3, -3, completed=True)]

    assert [t["Id"] for t in views.filter_tasks_by_status(tasks, "pending", NOW)] == [1, 2]
    assert [t["Id"] for t in views.filter_tasks_by_status(tasks, "completed", NOW)] == [3]
    assert [t["Id"] for t in views.filter_tasks_by_status(tasks, "overdue", NOW)] == [1]
    assert views.filter_tasks_by_status(tasks, None, NOW) == tasks
    with pytest.raises(ValueError):
        views.filter_tasks_by_status(tasks, "someday", NOW)


def test_sort_expenses_by_date_descending():
    records = [expense(1, "seeds", 1, "2025-05-02"), expense(2, "seeds", 1, "2025-06-10"),
               expense(3, "seeds", 1, "2025-06-01")]

    assert [r["Id"] for r in views.sort_expenses_by_date_descending(records)] == [2, 3, 1]


def test_sum_amounts_is_zero_for_empty_and_order_invariant():
    records = [expense(1, "seeds", 10.1), expense(2, "fuel", 20.2), expense(3, "labor", Decimal("0.3"))]

    assert views.sum_amounts([]) == 0
    assert views.sum_amounts(records) == Decimal("30.6")
    assert views.sum_amounts(list(reversed(records))) == views.sum_amounts(records)


def test_group_totals_and_top_group():
    records = [expense(1, "seeds", 100), expense(2, "fuel", 40), expense(3, "seeds", 30)]

    totals = views.group_totals(records, "category")

    assert totals == {"seeds": 130, "fuel": 40}
    assert views.top_group(totals) == "seeds"


def test_top_group_ties_go_to_first_key_and_empty_is_none():
    assert views.top_group({"fuel": 50, "labor": 50}) == "fuel"
    assert views.top_group({}) is None


def test_group_totals_unwraps_enum_keys():
    records = [
        schemas.Expense(Id=1, createdAt=NOW, farmId=1, amount=5, category="labor", date="2025-06-01", description="a"),
        schemas.Expense(Id=2, createdAt=NOW, farmId=1, amount=7, category="labor", date="2025-06-02", description="b"),
    ]

    assert views.group_totals(records, "category") == {"labor": Decimal("12.00")}


def test_average_amount():
    assert views.average_amount([]) == 0
    assert views.average_amount([expense(1, "seeds", 10), expense(2, "seeds", 20)]) == 15


def test_count_by_predicate():
    tasks = [task(1, -1), task(2, +1), task(3, -2, completed=True)]

    assert views.count_by_predicate(tasks, lambda t: not t["completed"]) == 2
    assert views.count_by_predicate([], lambda t: True) == 0


def test_days_between():
    assert views.days_between(TODAY + timedelta(days=3), TODAY) == 3
    assert views.days_between(TODAY - timedelta(days=3), TODAY) == -3
    # partial days truncate toward zero
    assert views.days_between(NOW + timedelta(days=2, hours=23), NOW) == 2
    assert views.days_between(NOW - timedelta(days=2, hours=23), NOW) == -2
    assert views.days_between("2025-06-18", "2025-06-15") == 3


def test_farm_name_resolves_weak_references():
    farms = [{"Id": 1, "name": "Green Acres"}, schemas.Farm(Id=2, createdAt=NOW, name="Hilltop", location="x", size=1)]

    assert views.farm_name(farms, 1) == "Green Acres"
    assert views.farm_name(farms, 2) == "Hilltop"
    assert views.farm_name(farms, 9) == views.UNKNOWN_FARM
    assert views.farm_name([], None) == "Unknown Farm"
