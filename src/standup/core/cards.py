"""Pure activity card logic - no I/O dependencies."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone

from .recurring import RecurringTask

WHAT_I_DID = "what_i_did"
WHAT_BROKE = "what_broke"
HOW_I_FIXED = "how_i_fixed"
TASKS_FOR_TOMORROW = "tasks_for_tomorrow"
SECTIONS = (WHAT_I_DID, WHAT_BROKE, HOW_I_FIXED, TASKS_FOR_TOMORROW)
TEXT_SECTIONS = (WHAT_BROKE, HOW_I_FIXED, TASKS_FOR_TOMORROW)

SECTION_TITLES = {
    WHAT_I_DID: "What I Did",
    WHAT_BROKE: "What Broke",
    HOW_I_FIXED: "How I Fixed It",
    TASKS_FOR_TOMORROW: "Tasks for Tomorrow",
}

TIME_KINDS = {"admin": "admin_time", "meeting": "meeting_time"}


@dataclass
class TaskItem:
    """A 'what I did' entry."""

    text: str
    time_estimate: float | None = None
    client_id: str | None = None
    is_recurring: bool = False
    recurring_task_id: str | None = None

    @classmethod
    def from_row(cls, data: dict | str) -> "TaskItem":
        """Create TaskItem from a stored JSON value (plain strings are accepted)."""
        if isinstance(data, str):
            return cls(text=data)
        estimate = data.get("time_estimate")
        return cls(
            text=data.get("text", ""),
            time_estimate=float(estimate) if estimate is not None else None,
            client_id=data.get("client_id"),
            is_recurring=bool(data.get("is_recurring", False)),
            recurring_task_id=data.get("recurring_task_id"),
        )

    def to_row(self) -> dict:
        """Serialize to JSON, omitting unset optional keys."""
        row: dict = {"text": self.text}
        if self.time_estimate is not None:
            row["time_estimate"] = self.time_estimate
        if self.client_id is not None:
            row["client_id"] = self.client_id
        if self.is_recurring:
            row["is_recurring"] = True
            row["recurring_task_id"] = self.recurring_task_id
        return row


@dataclass
class ActivityCard:
    """One user's daily log entry."""

    id: str
    user_id: str
    date: date
    what_i_did: list[TaskItem] = field(default_factory=list)
    what_broke: list[str] = field(default_factory=list)
    how_i_fixed: list[str] = field(default_factory=list)
    tasks_for_tomorrow: list[str] = field(default_factory=list)
    admin_time: float = 0.0
    meeting_time: float = 0.0
    last_updated: datetime | None = None

    @classmethod
    def from_row(cls, data: dict) -> "ActivityCard":
        """Create ActivityCard from a backend row.

        The date column may hold a plain date or a full ISO timestamp.
        """
        last_updated = None
        if data.get("last_updated"):
            last_updated = _parse_timestamp(data["last_updated"])
        return cls(
            id=data.get("id", ""),
            user_id=data["user_id"],
            date=date.fromisoformat(str(data["date"])[:10]),
            what_i_did=[TaskItem.from_row(i) for i in data.get("what_i_did") or []],
            what_broke=list(data.get("what_broke") or []),
            how_i_fixed=list(data.get("how_i_fixed") or []),
            tasks_for_tomorrow=list(data.get("tasks_for_tomorrow") or []),
            admin_time=float(data.get("admin_time") or 0),
            meeting_time=float(data.get("meeting_time") or 0),
            last_updated=last_updated,
        )

    def to_row(self) -> dict:
        """Serialize to a backend row."""
        row = {
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "what_i_did": [i.to_row() for i in self.what_i_did],
            "what_broke": list(self.what_broke),
            "how_i_fixed": list(self.how_i_fixed),
            "tasks_for_tomorrow": list(self.tasks_for_tomorrow),
            "admin_time": self.admin_time,
            "meeting_time": self.meeting_time,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }
        if self.id:
            row["id"] = self.id
        return row


@dataclass
class CardStats:
    """Totals shown in the weekly summary."""

    total_items: int
    total_hours: float


def _parse_timestamp(value: str) -> datetime:
    # Zulu suffix
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def build_initial_items(
    due_definitions: list[RecurringTask],
    previous_card: ActivityCard | None,
    default_client_id: str | None = None,
) -> list[TaskItem]:
    """
    Initial 'what I did' items for a new card.

    Recurring items come first (in input order), followed by yesterday's
    tasks for tomorrow. Nothing is de-duplicated.
    Pure function - no I/O.
    """
    items = [
        TaskItem(
            text=d.text,
            time_estimate=d.time_estimate,
            client_id=d.client_id,
            is_recurring=True,
            recurring_task_id=d.id,
        )
        for d in due_definitions
    ]

    if previous_card is not None:
        items.extend(
            TaskItem(text=text, client_id=default_client_id)
            for text in previous_card.tasks_for_tomorrow
        )

    return items


def new_card(
    user_id: str,
    on_date: date,
    items: list[TaskItem],
    now: datetime | None = None,
) -> ActivityCard:
    """A fresh, unsaved card with empty text sections and zeroed time totals."""
    return ActivityCard(
        id="",
        user_id=user_id,
        date=on_date,
        what_i_did=list(items),
        last_updated=now or datetime.now(timezone.utc),
    )


def task_hours(card: ActivityCard) -> float:
    """Sum of 'what I did' time estimates."""
    return sum(i.time_estimate or 0 for i in card.what_i_did)


def card_stats(card: ActivityCard | None) -> CardStats:
    """
    Item count across all sections and total hours including admin and meetings.

    Pure function - no I/O.
    """
    if card is None:
        return CardStats(total_items=0, total_hours=0.0)

    total_items = (
        len(card.what_i_did)
        + len(card.what_broke)
        + len(card.how_i_fixed)
        + len(card.tasks_for_tomorrow)
    )
    total_hours = task_hours(card) + card.admin_time + card.meeting_time
    return CardStats(total_items=total_items, total_hours=total_hours)


def add_entry(
    card: ActivityCard,
    section: str,
    text: str,
    time_estimate: float | None = None,
    client_id: str | None = None,
    now: datetime | None = None,
) -> ActivityCard:
    """Return a copy of the card with an entry appended to a section."""
    text = text.strip()
    if not text:
        raise ValueError("Entry text must not be empty")
    if section not in SECTIONS:
        raise ValueError(f"Unknown section {section!r}; expected one of {', '.join(SECTIONS)}")

    now = now or datetime.now(timezone.utc)
    if section == WHAT_I_DID:
        if time_estimate is not None and time_estimate < 0:
            raise ValueError("Time estimate must be non-negative")
        estimate = round(time_estimate, 1) if time_estimate is not None else None
        item = TaskItem(text=text, time_estimate=estimate, client_id=client_id)
        return replace(card, what_i_did=[*card.what_i_did, item], last_updated=now)

    return replace(card, **{section: [*getattr(card, section), text]}, last_updated=now)


def remove_entry(
    card: ActivityCard,
    section: str,
    index: int,
    now: datetime | None = None,
) -> ActivityCard:
    """Return a copy of the card with the entry at index removed from a section."""
    if section not in SECTIONS:
        raise ValueError(f"Unknown section {section!r}; expected one of {', '.join(SECTIONS)}")

    entries = list(getattr(card, section))
    if not 0 <= index < len(entries):
        raise ValueError(f"No entry {index} in {section} (has {len(entries)})")

    del entries[index]
    return replace(card, **{section: entries}, last_updated=now or datetime.now(timezone.utc))


def set_time(
    card: ActivityCard,
    kind: str,
    hours: float,
    now: datetime | None = None,
) -> ActivityCard:
    """Return a copy of the card with admin or meeting time set (one decimal)."""
    if kind not in TIME_KINDS:
        raise ValueError(f"Unknown time kind {kind!r}; expected admin or meeting")
    if hours < 0:
        raise ValueError("Hours must be non-negative")

    return replace(
        card,
        **{TIME_KINDS[kind]: round(hours, 1)},
        last_updated=now or datetime.now(timezone.utc),
    )
