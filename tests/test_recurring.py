"""Tests for core recurring task logic."""

from datetime import date, timedelta

import pytest

from standup.core.recurring import (
    RecurringTask,
    due_tasks,
    is_due,
    last_day_of_month,
    sunday_based_weekday,
    validate_recurring_task,
)


def make_task(**kwargs) -> RecurringTask:
    defaults = {"id": "r1", "user_id": "u1", "text": "Check inbox", "frequency": "daily"}
    defaults.update(kwargs)
    return RecurringTask(**defaults)


def dates_in_month(year: int, month: int) -> list[date]:
    d = date(year, month, 1)
    days = []
    while d.month == month:
        days.append(d)
        d += timedelta(days=1)
    return days


class TestCalendarHelpers:
    def test_last_day_leap_february(self):
        assert last_day_of_month(2024, 2) == 29

    def test_last_day_common_february(self):
        assert last_day_of_month(2023, 2) == 28

    def test_last_day_century_not_leap(self):
        assert last_day_of_month(1900, 2) == 28

    def test_last_day_thirty_and_thirty_one(self):
        assert last_day_of_month(2024, 4) == 30
        assert last_day_of_month(2024, 12) == 31

    def test_sunday_is_zero(self):
        assert sunday_based_weekday(date(2024, 6, 2)) == 0  # Sunday
        assert sunday_based_weekday(date(2024, 6, 3)) == 1  # Monday
        assert sunday_based_weekday(date(2024, 6, 8)) == 6  # Saturday


class TestIsDue:
    def test_daily_is_always_due(self):
        task = make_task(frequency="daily")
        for d in dates_in_month(2024, 2):
            assert is_due(task, d) is True

    def test_weekly_matches_listed_days(self):
        task = make_task(frequency="weekly", days_of_week=[1, 3])
        assert is_due(task, date(2024, 6, 3)) is True  # Monday
        assert is_due(task, date(2024, 6, 4)) is False  # Tuesday
        assert is_due(task, date(2024, 6, 5)) is True  # Wednesday

    def test_weekly_sunday(self):
        task = make_task(frequency="weekly", days_of_week=[0])
        assert is_due(task, date(2024, 6, 2)) is True
        assert is_due(task, date(2024, 6, 8)) is False

    def test_weekly_equivalence_over_a_month(self):
        task = make_task(frequency="weekly", days_of_week=[2, 5, 6])
        for d in dates_in_month(2024, 7):
            assert is_due(task, d) == (sunday_based_weekday(d) in [2, 5, 6])

    def test_weekly_empty_days_never_due(self):
        task = make_task(frequency="weekly", days_of_week=[])
        assert not any(is_due(task, d) for d in dates_in_month(2024, 6))

    def test_weekly_missing_days_never_due(self):
        task = make_task(frequency="weekly", days_of_week=None)
        assert is_due(task, date(2024, 6, 3)) is False

    def test_monthly_specific_day(self):
        task = make_task(frequency="monthly", day_of_month=15)
        assert is_due(task, date(2024, 6, 15)) is True
        assert is_due(task, date(2024, 6, 14)) is False

    def test_monthly_last_day_leap_year(self):
        task = make_task(frequency="monthly", day_of_month=-1)
        due = [d for d in dates_in_month(2024, 2) if is_due(task, d)]
        assert due == [date(2024, 2, 29)]

    def test_monthly_last_day_common_year(self):
        task = make_task(frequency="monthly", day_of_month=-1)
        due = [d for d in dates_in_month(2023, 2) if is_due(task, d)]
        assert due == [date(2023, 2, 28)]

    def test_monthly_last_day_once_per_month(self):
        task = make_task(frequency="monthly", day_of_month=-1)
        for month in range(1, 13):
            due = [d for d in dates_in_month(2025, month) if is_due(task, d)]
            assert len(due) == 1
            assert due[0].day == last_day_of_month(2025, month)

    def test_monthly_31_never_due_in_30_day_month(self):
        task = make_task(frequency="monthly", day_of_month=31)
        assert not any(is_due(task, d) for d in dates_in_month(2024, 4))

    def test_monthly_30_not_clamped_in_february(self):
        task = make_task(frequency="monthly", day_of_month=30)
        assert not any(is_due(task, d) for d in dates_in_month(2024, 2))

    def test_monthly_missing_day_never_due(self):
        task = make_task(frequency="monthly", day_of_month=None)
        assert not any(is_due(task, d) for d in dates_in_month(2024, 6))

    def test_unknown_frequency_not_due(self):
        task = make_task(frequency="yearly")
        assert is_due(task, date(2024, 6, 3)) is False

    def test_idempotent(self):
        task = make_task(frequency="weekly", days_of_week=[1])
        d = date(2024, 6, 3)
        assert is_due(task, d) == is_due(task, d)
        assert task.days_of_week == [1]


class TestDueTasks:
    def test_preserves_order(self):
        tasks = [
            make_task(id="a", frequency="daily"),
            make_task(id="b", frequency="weekly", days_of_week=[2]),
            make_task(id="c", frequency="monthly", day_of_month=3),
            make_task(id="d", frequency="daily"),
        ]
        due = due_tasks(tasks, date(2024, 6, 3))  # Monday the 3rd
        assert [t.id for t in due] == ["a", "c", "d"]

    def test_empty(self):
        assert due_tasks([], date(2024, 6, 3)) == []


class TestValidateRecurringTask:
    def test_valid_daily(self):
        assert validate_recurring_task(make_task()) == []

    def test_valid_weekly(self):
        assert validate_recurring_task(make_task(frequency="weekly", days_of_week=[1, 3])) == []

    def test_valid_monthly_last_day(self):
        assert validate_recurring_task(make_task(frequency="monthly", day_of_month=-1)) == []

    def test_unknown_frequency(self):
        problems = validate_recurring_task(make_task(frequency="hourly"))
        assert any("unknown frequency" in p for p in problems)

    def test_weekly_without_days(self):
        problems = validate_recurring_task(make_task(frequency="weekly", days_of_week=[]))
        assert any("at least one day" in p for p in problems)

    def test_weekly_day_out_of_range(self):
        problems = validate_recurring_task(make_task(frequency="weekly", days_of_week=[7]))
        assert any("between 0" in p for p in problems)

    @pytest.mark.parametrize("day", [0, 32, -2])
    def test_monthly_day_out_of_range(self, day):
        problems = validate_recurring_task(make_task(frequency="monthly", day_of_month=day))
        assert any("1-31" in p for p in problems)

    def test_wrong_frequency_field(self):
        problems = validate_recurring_task(
            make_task(frequency="weekly", days_of_week=[1], day_of_month=5)
        )
        assert any("must not set day of month" in p for p in problems)

    def test_negative_estimate_and_empty_text(self):
        problems = validate_recurring_task(make_task(text="  ", time_estimate=-1))
        assert "text must not be empty" in problems
        assert "time estimate must be non-negative" in problems


class TestRecurringTaskRows:
    def test_from_row(self):
        task = RecurringTask.from_row(
            {
                "id": "r9",
                "user_id": "u1",
                "text": "Timesheets",
                "frequency": "monthly",
                "day_of_month": -1,
                "days_of_week": None,
                "time_estimate": 1,
                "client_id": "c1",
            }
        )
        assert task.day_of_month == -1
        assert task.time_estimate == 1.0
        assert task.client_id == "c1"

    def test_to_row_nulls_unused_fields(self):
        task = make_task(frequency="daily", days_of_week=[1], day_of_month=3)
        row = task.to_row()
        assert row["days_of_week"] is None
        assert row["day_of_month"] is None

    def test_schedule_label(self):
        assert make_task(frequency="weekly", days_of_week=[3, 1]).schedule_label() == "weekly (Mon, Wed)"
        assert make_task(frequency="monthly", day_of_month=-1).schedule_label() == "monthly (last day)"
        assert make_task(frequency="monthly", day_of_month=5).schedule_label() == "monthly (day 5)"
