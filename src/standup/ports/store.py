"""Combined storage interface used by the workflow layer."""

from typing import Protocol

from .card_repo import CardRepository
from .recurring_repo import RecurringTaskRepository
from .team_repo import TeamRepository


class StandupStore(CardRepository, RecurringTaskRepository, TeamRepository, Protocol):
    """A backend that stores cards, recurring tasks and the team directory."""
