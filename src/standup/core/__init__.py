"""Functional core - pure business logic with no I/O."""

from .recurring import RecurringTask, is_due, due_tasks, last_day_of_month, validate_recurring_task
from .cards import ActivityCard, TaskItem, CardStats, build_initial_items, card_stats, new_card
from .summary import WeekSummary, build_week_summary, week_dates
from .team import Client, User, normalize_client, find_duplicate_tag
from .report import format_card, format_week

__all__ = [
    # Recurring tasks
    "RecurringTask",
    "is_due",
    "due_tasks",
    "last_day_of_month",
    "validate_recurring_task",
    # Cards
    "ActivityCard",
    "TaskItem",
    "CardStats",
    "build_initial_items",
    "card_stats",
    "new_card",
    # Summary
    "WeekSummary",
    "build_week_summary",
    "week_dates",
    # Team
    "Client",
    "User",
    "normalize_client",
    "find_duplicate_tag",
    # Rendering
    "format_card",
    "format_week",
]
