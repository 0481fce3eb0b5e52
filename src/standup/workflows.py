"""Shared workflow layer between CLI and Telegram.

Each function fetches what it needs from the store, runs the pure core,
and persists the result.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from .adapters.file_store import FileStore
from .adapters.supabase_api import SupabaseAdapter
from .config import DATA_DIR, Config, Tokens
from .core.cards import (
    ActivityCard,
    add_entry,
    build_initial_items,
    new_card,
    remove_entry,
    set_time,
)
from .core.recurring import RecurringTask, due_tasks, validate_recurring_task
from .core.summary import WeekSummary, build_week_summary, week_dates
from .core.team import Client, User, default_avatar, find_duplicate_tag, normalize_client
from .errors import AuthenticationError, CardNotFoundError, DuplicateCardError, StoreError
from .ports import StandupStore

logger = logging.getLogger(__name__)


def get_store(config: Config) -> StandupStore:
    """Resolve the storage backend from config."""
    if config.backend == "supabase":
        return SupabaseAdapter(config)
    if config.data_dir:
        return FileStore(Path(config.data_dir).expanduser())
    return FileStore(DATA_DIR)


def today(config: Config) -> date:
    """Current date in the configured timezone."""
    try:
        tz = ZoneInfo(config.timezone)
    except (KeyError, ValueError):
        logger.warning(f"Unknown timezone {config.timezone!r}, using local time")
        return date.today()
    return datetime.now(tz).date()


def resolve_user_id(config: Config) -> str:
    """The acting user: configured USER_ID, else the signed-in session's user."""
    if config.user_id:
        return config.user_id
    tokens = Tokens.load()
    if tokens.user_id:
        return tokens.user_id
    raise AuthenticationError("No user configured. Set USER_ID in standup.conf or run 'standup auth'.")


def ensure_user(store: StandupStore, user_id: str, name: str = "") -> User:
    """Fetch a user's profile, creating a default one if missing."""
    user = store.get_user(user_id)
    if user is not None:
        return user
    logger.info(f"Creating profile for user {user_id}")
    return store.update_user(
        User(id=user_id, name=name or "New User", avatar=default_avatar(user_id))
    )


# ============== Cards ==============


def create_daily_card(
    store: StandupStore,
    user_id: str,
    on_date: date,
    now: datetime | None = None,
) -> ActivityCard:
    """
    Create a user's card for a date, pre-populated with due recurring tasks
    and the previous day's tasks for tomorrow.

    Raises DuplicateCardError if the user already has a card for that date.
    """
    if store.get_card(user_id, on_date) is not None:
        raise DuplicateCardError(f"You already have a card for {on_date.isoformat()}")

    definitions = store.list_recurring_tasks(user_id)
    for definition in definitions:
        problems = validate_recurring_task(definition)
        if problems:
            logger.warning(
                f"Recurring task {definition.id} ({definition.text!r}) is misconfigured: "
                + "; ".join(problems)
            )
    due = due_tasks(definitions, on_date)

    previous_card = store.get_card(user_id, on_date - timedelta(days=1))

    user = store.get_user(user_id)
    default_client_id = user.default_client_id if user else None

    items = build_initial_items(due, previous_card, default_client_id)
    card = store.create_card(new_card(user_id, on_date, items, now))
    logger.info(
        f"Created card for {user_id} on {on_date}: {len(due)} recurring, "
        f"{len(items) - len(due)} carried over"
    )
    return card


def get_card_or_raise(store: StandupStore, user_id: str, on_date: date) -> ActivityCard:
    card = store.get_card(user_id, on_date)
    if card is None:
        raise CardNotFoundError(f"No card for {on_date.isoformat()}. Run 'standup new' first.")
    return card


def add_card_entry(
    store: StandupStore,
    user_id: str,
    on_date: date,
    section: str,
    text: str,
    time_estimate: float | None = None,
    client_id: str | None = None,
) -> ActivityCard:
    """Append an entry to a section of the user's card."""
    card = get_card_or_raise(store, user_id, on_date)
    if section == "what_i_did" and client_id is None:
        user = store.get_user(user_id)
        client_id = user.default_client_id if user else None
    updated = add_entry(card, section, text, time_estimate, client_id, now=datetime.now(timezone.utc))
    return store.update_card(updated)


def remove_card_entry(
    store: StandupStore, user_id: str, on_date: date, section: str, index: int
) -> ActivityCard:
    """Remove an entry from a section of the user's card."""
    card = get_card_or_raise(store, user_id, on_date)
    return store.update_card(remove_entry(card, section, index, now=datetime.now(timezone.utc)))


def set_card_time(
    store: StandupStore, user_id: str, on_date: date, kind: str, hours: float
) -> ActivityCard:
    """Set admin or meeting time on the user's card."""
    card = get_card_or_raise(store, user_id, on_date)
    return store.update_card(set_time(card, kind, hours, now=datetime.now(timezone.utc)))


def delete_daily_card(store: StandupStore, user_id: str, on_date: date) -> None:
    card = get_card_or_raise(store, user_id, on_date)
    store.delete_card(card.id)


def weekly_summary(store: StandupStore, as_of: date, offset: int = 0) -> WeekSummary:
    """Fetch the team's cards for a week and group them by day and user."""
    dates = week_dates(as_of, offset)
    cards = store.list_cards(dates[0], dates[-1])
    return build_week_summary(cards, store.list_users(), as_of, offset)


# ============== Recurring tasks ==============


def add_recurring_task(store: StandupStore, task: RecurringTask) -> RecurringTask:
    """Validate and store a recurring task definition. Raises ValueError on problems."""
    problems = validate_recurring_task(task)
    if problems:
        raise ValueError("Invalid recurring task: " + "; ".join(problems))
    return store.create_recurring_task(task)


def delete_recurring_task(store: StandupStore, user_id: str, task_id: str) -> None:
    """Delete one of the user's recurring tasks."""
    if not any(t.id == task_id for t in store.list_recurring_tasks(user_id)):
        raise StoreError(f"No recurring task {task_id} for this user")
    store.delete_recurring_task(task_id)


# ============== Clients ==============


def add_client(store: StandupStore, client: Client) -> Client:
    """Normalize and store a client. Raises ValueError on a duplicate tag."""
    client = normalize_client(client)
    existing = find_duplicate_tag(store.list_clients(), client.tag)
    if existing is not None:
        raise ValueError(f"A client with tag {client.tag} already exists")
    return store.create_client(client)


def update_client(
    store: StandupStore,
    client: Client,
    name: str | None = None,
    tag: str | None = None,
    emoji: str | None = None,
    color: str | None = None,
) -> Client:
    """Apply the given field changes to a client. Raises ValueError if the new tag is taken."""
    changes = {
        k: v
        for k, v in {"name": name, "tag": tag, "emoji": emoji, "color": color}.items()
        if v is not None
    }
    edited = normalize_client(replace(client, **changes))
    others = [c for c in store.list_clients() if c.id != client.id]
    if find_duplicate_tag(others, edited.tag) is not None:
        raise ValueError(f"A client with tag {edited.tag} already exists")
    return store.update_client(edited)


def find_client(store: StandupStore, tag_or_id: str) -> Client | None:
    """Look up a client by tag (case-insensitive) or id."""
    clients = store.list_clients()
    return find_duplicate_tag(clients, tag_or_id) or next(
        (c for c in clients if c.id == tag_or_id), None
    )


def set_default_client(store: StandupStore, user_id: str, client_id: str | None) -> User:
    """Set (or clear) the client new carry-over items are tagged with."""
    user = ensure_user(store, user_id)
    user.default_client_id = client_id
    return store.update_user(user)


def update_profile(
    store: StandupStore, user_id: str, name: str | None = None, avatar: str | None = None
) -> User:
    """Change the user's display name or avatar URL."""
    user = ensure_user(store, user_id)
    if name is not None:
        name = name.strip()
        if not name:
            raise ValueError("Name must not be empty")
        user.name = name
    if avatar is not None:
        user.avatar = avatar.strip() or default_avatar(user_id)
    return store.update_user(user)
