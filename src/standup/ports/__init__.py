"""Ports - interfaces/protocols for external dependencies."""

from .card_repo import CardRepository
from .recurring_repo import RecurringTaskRepository
from .team_repo import TeamRepository
from .store import StandupStore

__all__ = [
    "CardRepository",
    "RecurringTaskRepository",
    "TeamRepository",
    "StandupStore",
]
