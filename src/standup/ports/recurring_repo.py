"""Recurring task repository interface."""

from typing import Protocol

from standup.core.recurring import RecurringTask


class RecurringTaskRepository(Protocol):
    """Interface for recurring task definitions."""

    def list_recurring_tasks(self, user_id: str) -> list[RecurringTask]:
        """Fetch a user's recurring task definitions, newest first."""
        ...

    def create_recurring_task(self, task: RecurringTask) -> RecurringTask:
        """Insert a definition and return it with its id."""
        ...

    def delete_recurring_task(self, task_id: str) -> None:
        """Delete a definition by id."""
        ...
