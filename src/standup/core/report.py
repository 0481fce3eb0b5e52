"""Pure markdown rendering of cards and summaries - no I/O dependencies."""

from .cards import (
    ActivityCard,
    SECTION_TITLES,
    TEXT_SECTIONS,
    TaskItem,
    card_stats,
    task_hours,
)
from .summary import WeekSummary, format_week_range, user_week_hours
from .team import Client


def format_hours(hours: float) -> str:
    return f"{hours:.1f}h"


def format_item_line(item: TaskItem, clients: dict[str, Client] | None = None) -> str:
    """
    Format a single 'what I did' item.

    Pure function - no I/O.
    """
    clients = clients or {}
    parts = [f"- {item.text}"]

    client = clients.get(item.client_id) if item.client_id else None
    if client:
        parts.append(f"[{client.label()}]")
    if item.time_estimate is not None:
        parts.append(f"({format_hours(item.time_estimate)})")
    if item.is_recurring:
        parts.append("(recurring)")

    return " ".join(parts)


def format_card(
    card: ActivityCard,
    clients: dict[str, Client] | None = None,
    user_name: str | None = None,
) -> str:
    """
    Format a card as markdown.

    Pure function - no I/O.
    """
    who = f"{user_name} - " if user_name else ""
    lines = [f"## {who}{card.date.strftime('%A, %B %d, %Y')}", ""]

    lines.append(f"### {SECTION_TITLES['what_i_did']}")
    if card.what_i_did:
        lines.extend(format_item_line(i, clients) for i in card.what_i_did)
    else:
        lines.append("None")

    for section in TEXT_SECTIONS:
        lines.append("")
        lines.append(f"### {SECTION_TITLES[section]}")
        entries = getattr(card, section)
        if entries:
            lines.extend(f"- {e}" for e in entries)
        else:
            lines.append("None")

    stats = card_stats(card)
    lines.append("")
    lines.append(f"Task time: {format_hours(task_hours(card))}")
    lines.append(f"Admin time: {format_hours(card.admin_time)}")
    lines.append(f"Meeting time: {format_hours(card.meeting_time)}")
    lines.append(f"Total: {format_hours(stats.total_hours)}")

    return "\n".join(lines)


def format_week(summary: WeekSummary) -> str:
    """
    Format a week summary as a markdown list, one block per team member.

    Pure function - no I/O.
    """
    lines = [f"## Weekly Summary ({format_week_range(summary.dates)})"]

    if not summary.users:
        lines.append("")
        lines.append("No team members.")
        return "\n".join(lines)

    for user in summary.users:
        lines.append("")
        lines.append(f"### {user.name} ({format_hours(user_week_hours(summary, user.id))})")
        for d in summary.dates:
            card = summary.card_for(d, user.id)
            day = d.strftime("%a %b %d")
            if card is None:
                lines.append(f"- {day}: No entry")
            else:
                stats = card_stats(card)
                lines.append(f"- {day}: {format_hours(stats.total_hours)}, {stats.total_items} items")

    return "\n".join(lines)
