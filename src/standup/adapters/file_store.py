"""File-based storage adapter."""

import json
import logging
import uuid
from datetime import date, datetime, timezone
from pathlib import Path

from standup.core.cards import ActivityCard
from standup.core.recurring import RecurringTask
from standup.core.team import Client, User
from standup.errors import CardNotFoundError, DuplicateCardError, StoreError

logger = logging.getLogger(__name__)

CARDS = "activity_cards"
RECURRING = "recurring_tasks"
CLIENTS = "clients"
USERS = "users"


class FileStore:
    """
    File-based storage.

    Implements CardRepository, RecurringTaskRepository and TeamRepository.
    Each table is a JSON list of rows in its own file.
    """

    def __init__(self, data_dir: Path | str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _path_for_table(self, table: str) -> Path:
        """Get the file path for a table."""
        return self.data_dir / f"{table}.json"

    def _read(self, table: str) -> list[dict]:
        path = self._path_for_table(table)
        if not path.exists():
            return []
        try:
            return json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise StoreError(f"Corrupt data file {path}: {e}") from e

    def _write(self, table: str, rows: list[dict]) -> None:
        path = self._path_for_table(table)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(rows, indent=2))
        tmp.replace(path)

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ============== Cards ==============

    def get_card(self, user_id: str, on_date: date) -> ActivityCard | None:
        """Fetch one user's card for a date. Returns None if not found."""
        for row in self._read(CARDS):
            card = ActivityCard.from_row(row)
            if card.user_id == user_id and card.date == on_date:
                return card
        return None

    def list_cards(
        self, start: date, end: date, user_id: str | None = None
    ) -> list[ActivityCard]:
        """Fetch cards dated within [start, end], newest first."""
        cards = [ActivityCard.from_row(row) for row in self._read(CARDS)]
        cards = [
            c for c in cards
            if start <= c.date <= end and (user_id is None or c.user_id == user_id)
        ]
        return sorted(cards, key=lambda c: c.date, reverse=True)

    def create_card(self, card: ActivityCard) -> ActivityCard:
        """Insert a card, enforcing one card per user per date."""
        rows = self._read(CARDS)
        for row in rows:
            if row["user_id"] == card.user_id and str(row["date"])[:10] == card.date.isoformat():
                raise DuplicateCardError(
                    f"A card for {card.date.isoformat()} already exists"
                )

        row = card.to_row()
        row["id"] = card.id or str(uuid.uuid4())
        row["created_at"] = self._now()
        rows.append(row)
        self._write(CARDS, rows)
        logger.debug(f"Created card {row['id']} for {card.user_id} on {card.date}")
        return ActivityCard.from_row(row)

    def update_card(self, card: ActivityCard) -> ActivityCard:
        """Overwrite an existing card."""
        rows = self._read(CARDS)
        for i, row in enumerate(rows):
            if row["id"] == card.id:
                updated = {**row, **card.to_row()}
                rows[i] = updated
                self._write(CARDS, rows)
                return ActivityCard.from_row(updated)
        raise CardNotFoundError(f"No card with id {card.id}")

    def delete_card(self, card_id: str) -> None:
        """Delete a card by id."""
        rows = self._read(CARDS)
        remaining = [r for r in rows if r["id"] != card_id]
        if len(remaining) == len(rows):
            raise CardNotFoundError(f"No card with id {card_id}")
        self._write(CARDS, remaining)

    # ============== Recurring tasks ==============

    def list_recurring_tasks(self, user_id: str) -> list[RecurringTask]:
        """Fetch a user's recurring task definitions, newest first."""
        rows = [r for r in self._read(RECURRING) if r["user_id"] == user_id]
        rows.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return [RecurringTask.from_row(r) for r in rows]

    def create_recurring_task(self, task: RecurringTask) -> RecurringTask:
        """Insert a definition and return it with its id."""
        rows = self._read(RECURRING)
        row = task.to_row()
        row["id"] = task.id or str(uuid.uuid4())
        row["created_at"] = row["updated_at"] = self._now()
        rows.append(row)
        self._write(RECURRING, rows)
        return RecurringTask.from_row(row)

    def delete_recurring_task(self, task_id: str) -> None:
        """Delete a definition by id."""
        rows = self._read(RECURRING)
        remaining = [r for r in rows if r["id"] != task_id]
        if len(remaining) == len(rows):
            raise StoreError(f"No recurring task with id {task_id}")
        self._write(RECURRING, remaining)

    # ============== Team ==============

    def list_users(self) -> list[User]:
        return [User.from_row(r) for r in self._read(USERS)]

    def get_user(self, user_id: str) -> User | None:
        """Fetch a user. Returns None if not found."""
        return next((u for u in self.list_users() if u.id == user_id), None)

    def update_user(self, user: User) -> User:
        """Insert or overwrite a user profile."""
        rows = [r for r in self._read(USERS) if r["id"] != user.id]
        rows.append(user.to_row())
        self._write(USERS, rows)
        return user

    def list_clients(self) -> list[Client]:
        return [Client.from_row(r) for r in self._read(CLIENTS)]

    def create_client(self, client: Client) -> Client:
        rows = self._read(CLIENTS)
        row = client.to_row()
        row["id"] = client.id or str(uuid.uuid4())
        rows.append(row)
        self._write(CLIENTS, rows)
        return Client.from_row(row)

    def update_client(self, client: Client) -> Client:
        rows = self._read(CLIENTS)
        for i, row in enumerate(rows):
            if row["id"] == client.id:
                rows[i] = client.to_row()
                self._write(CLIENTS, rows)
                return client
        raise StoreError(f"No client with id {client.id}")

    def delete_client(self, client_id: str) -> None:
        rows = self._read(CLIENTS)
        remaining = [r for r in rows if r["id"] != client_id]
        if len(remaining) == len(rows):
            raise StoreError(f"No client with id {client_id}")
        self._write(CLIENTS, remaining)
