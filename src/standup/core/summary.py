"""Pure weekly team summary logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, timedelta

from .cards import ActivityCard, card_stats
from .team import User


@dataclass
class WeekSummary:
    """Cards for one week, one cell per (day, user)."""

    dates: list[date]
    users: list[User]
    grid: dict[date, dict[str, ActivityCard | None]]

    def card_for(self, day: date, user_id: str) -> ActivityCard | None:
        return self.grid.get(day, {}).get(user_id)


def week_dates(as_of: date, offset: int = 0) -> list[date]:
    """
    Monday through Sunday of the week containing as_of, shifted by offset weeks.

    Pure function - no I/O.
    """
    monday = as_of - timedelta(days=as_of.weekday()) + timedelta(weeks=offset)
    return [monday + timedelta(days=i) for i in range(7)]


def build_week_summary(
    cards: list[ActivityCard],
    users: list[User],
    as_of: date,
    offset: int = 0,
) -> WeekSummary:
    """
    Group cards into a (day, user) grid for the selected week.

    Cards outside the week or for unknown users are ignored; when a cell
    receives more than one card the last one wins.
    Pure function - no I/O.
    """
    dates = week_dates(as_of, offset)
    grid: dict[date, dict[str, ActivityCard | None]] = {
        d: {u.id: None for u in users} for d in dates
    }

    for card in cards:
        row = grid.get(card.date)
        if row is None or card.user_id not in row:
            continue
        row[card.user_id] = card

    return WeekSummary(dates=dates, users=users, grid=grid)


def user_week_hours(summary: WeekSummary, user_id: str) -> float:
    """Total hours a user logged across the week."""
    return sum(card_stats(summary.card_for(d, user_id)).total_hours for d in summary.dates)


def format_week_range(dates: list[date]) -> str:
    """Format a week as 'Jun 03 - Jun 09, 2024'."""
    start, end = dates[0], dates[-1]
    return f"{start.strftime('%b %d')} - {end.strftime('%b %d, %Y')}"
