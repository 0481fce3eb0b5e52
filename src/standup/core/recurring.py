"""Pure recurring-task scheduling logic - no I/O dependencies."""

import calendar
from dataclasses import dataclass
from datetime import date

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
FREQUENCIES = (DAILY, WEEKLY, MONTHLY)

# day_of_month sentinel
LAST_DAY = -1

DAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


@dataclass
class RecurringTask:
    """A template that spawns a card item on qualifying dates."""

    id: str
    user_id: str
    text: str
    frequency: str
    time_estimate: float | None = None
    client_id: str | None = None
    days_of_week: list[int] | None = None
    day_of_month: int | None = None
    created_at: str | None = None
    updated_at: str | None = None

    def schedule_label(self) -> str:
        """Human-readable schedule, e.g. 'weekly (Mon, Wed)'."""
        if self.frequency == WEEKLY:
            days = ", ".join(DAY_NAMES[d] for d in sorted(self.days_of_week or []) if 0 <= d <= 6)
            return f"weekly ({days or 'no days'})"
        if self.frequency == MONTHLY:
            if self.day_of_month == LAST_DAY:
                return "monthly (last day)"
            return f"monthly (day {self.day_of_month})"
        return self.frequency

    @classmethod
    def from_row(cls, data: dict) -> "RecurringTask":
        """Create RecurringTask from a backend row."""
        estimate = data.get("time_estimate")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            text=data.get("text", ""),
            frequency=data.get("frequency", ""),
            time_estimate=float(estimate) if estimate is not None else None,
            client_id=data.get("client_id"),
            days_of_week=data.get("days_of_week"),
            day_of_month=data.get("day_of_month"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def to_row(self) -> dict:
        """Serialize to a backend row. Frequency-specific fields are nulled when unused."""
        row = {
            "user_id": self.user_id,
            "text": self.text,
            "frequency": self.frequency,
            "time_estimate": self.time_estimate,
            "client_id": self.client_id,
            "days_of_week": self.days_of_week if self.frequency == WEEKLY else None,
            "day_of_month": self.day_of_month if self.frequency == MONTHLY else None,
        }
        if self.id:
            row["id"] = self.id
        return row


def last_day_of_month(year: int, month: int) -> int:
    """Number of days in the given month (accounts for leap years)."""
    return calendar.monthrange(year, month)[1]


def sunday_based_weekday(d: date) -> int:
    """Day of week with Sunday=0 through Saturday=6."""
    return (d.weekday() + 1) % 7


def is_due(task: RecurringTask, on_date: date) -> bool:
    """
    Whether a recurring task applies to a calendar date.

    Pure function - no I/O. Malformed or unknown schedules are never due.
    """
    if task.frequency == DAILY:
        return True

    if task.frequency == WEEKLY:
        return sunday_based_weekday(on_date) in (task.days_of_week or [])

    if task.frequency == MONTHLY:
        if task.day_of_month == LAST_DAY:
            return on_date.day == last_day_of_month(on_date.year, on_date.month)
        return on_date.day == task.day_of_month

    return False


def due_tasks(tasks: list[RecurringTask], on_date: date) -> list[RecurringTask]:
    """
    Filter to tasks due on a date, preserving input order.

    Pure function - no I/O.
    """
    return [t for t in tasks if is_due(t, on_date)]


def validate_recurring_task(task: RecurringTask) -> list[str]:
    """
    Report configuration problems with a recurring task definition.

    Returns a list of messages; empty when the definition is well formed.
    """
    problems = []

    if not task.text.strip():
        problems.append("text must not be empty")

    if task.time_estimate is not None and task.time_estimate < 0:
        problems.append("time estimate must be non-negative")

    if task.frequency not in FREQUENCIES:
        problems.append(f"unknown frequency {task.frequency!r}")
        return problems

    if task.frequency == WEEKLY:
        if not task.days_of_week:
            problems.append("weekly task needs at least one day of week")
        elif any(d < 0 or d > 6 for d in task.days_of_week):
            problems.append("days of week must be between 0 (Sunday) and 6 (Saturday)")
        if task.day_of_month is not None:
            problems.append("weekly task must not set day of month")

    if task.frequency == MONTHLY:
        if task.day_of_month is None:
            problems.append("monthly task needs a day of month")
        elif task.day_of_month != LAST_DAY and not 1 <= task.day_of_month <= 31:
            problems.append("day of month must be 1-31 or -1 for the last day")
        if task.days_of_week:
            problems.append("monthly task must not set days of week")

    if task.frequency == DAILY and (task.days_of_week or task.day_of_month is not None):
        problems.append("daily task must not set days of week or day of month")

    return problems
