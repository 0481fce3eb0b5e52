"""Activity card repository interface."""

from datetime import date
from typing import Protocol

from standup.core.cards import ActivityCard


class CardRepository(Protocol):
    """Interface for reading and writing activity cards in any backend."""

    def get_card(self, user_id: str, on_date: date) -> ActivityCard | None:
        """Fetch one user's card for a date. Returns None if not found."""
        ...

    def list_cards(
        self, start: date, end: date, user_id: str | None = None
    ) -> list[ActivityCard]:
        """Fetch cards dated within [start, end], optionally for one user."""
        ...

    def create_card(self, card: ActivityCard) -> ActivityCard:
        """Insert a card. Raises DuplicateCardError if one exists for the user and date."""
        ...

    def update_card(self, card: ActivityCard) -> ActivityCard:
        """Overwrite an existing card."""
        ...

    def delete_card(self, card_id: str) -> None:
        """Delete a card by id."""
        ...
