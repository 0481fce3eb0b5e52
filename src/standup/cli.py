"""Standup CLI - daily activity cards."""

import json
import logging
import sys
from datetime import date

import click

from .adapters.supabase_api import sign_in
from .config import load_config
from .core.cards import SECTIONS, card_stats
from .core.recurring import DAY_NAMES, FREQUENCIES, LAST_DAY, RecurringTask
from .core.report import format_card, format_week
from .core.team import Client
from .errors import StoreError
from .workflows import (
    add_card_entry,
    add_client,
    add_recurring_task,
    create_daily_card,
    delete_daily_card,
    delete_recurring_task,
    ensure_user,
    find_client,
    get_store,
    remove_card_entry,
    resolve_user_id,
    set_card_time,
    set_default_client,
    today,
    update_client,
    update_profile,
    weekly_summary,
)

# Short aliases accepted for card sections
SECTION_ALIASES = {
    "did": "what_i_did",
    "broke": "what_broke",
    "fixed": "how_i_fixed",
    "tomorrow": "tasks_for_tomorrow",
}


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _context():
    """Load config, store, acting user and today's date, exiting on errors."""
    config = load_config()
    try:
        store = get_store(config)
        user_id = resolve_user_id(config)
    except StoreError as e:
        _fail(str(e))
    return config, store, user_id


def _target_date(config, target_date: str | None) -> date:
    if not target_date:
        return today(config)
    try:
        return date.fromisoformat(target_date)
    except ValueError:
        _fail(f"Invalid date {target_date!r}, expected YYYY-MM-DD")


def _section(name: str) -> str:
    section = SECTION_ALIASES.get(name, name)
    if section not in SECTIONS:
        _fail(f"Unknown section {name!r}. Use one of: {', '.join(SECTION_ALIASES)}")
    return section


def _card_json(card) -> dict:
    row = card.to_row()
    row["id"] = card.id
    stats = card_stats(card)
    row["total_items"] = stats.total_items
    row["total_hours"] = stats.total_hours
    return row


@click.group()
@click.version_option(package_name="standup-log")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool):
    """Standup - daily activity log CLI."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


@main.command()
@click.option("--email", default=None, help="Account email (defaults to SUPABASE_EMAIL)")
@click.password_option(confirmation_prompt=False)
def auth(email: str | None, password: str):
    """Sign in to the hosted backend."""
    config = load_config()
    email = email or config.supabase_email or click.prompt("Email")
    try:
        tokens = sign_in(email, password, config)
    except StoreError as e:
        _fail(str(e))
    click.echo(f"Signed in. User id: {tokens.user_id}")


@main.command()
@click.option("--date", "-d", "target_date", default=None,
              help="Card date (YYYY-MM-DD), defaults to today")
def new(target_date: str | None):
    """Create today's card from recurring tasks and yesterday's plan."""
    config, store, user_id = _context()
    target = _target_date(config, target_date)

    try:
        card = create_daily_card(store, user_id, target)
    except StoreError as e:
        _fail(str(e))

    clients = {c.id: c for c in store.list_clients()}
    click.echo(format_card(card, clients))


@main.command()
@click.option("--date", "-d", "target_date", default=None,
              help="Date to view (YYYY-MM-DD), defaults to today")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def show(target_date: str | None, as_json: bool):
    """Show a card."""
    config, store, user_id = _context()
    target = _target_date(config, target_date)

    try:
        card = store.get_card(user_id, target)
        clients = {c.id: c for c in store.list_clients()}
    except StoreError as e:
        _fail(str(e))

    if card is None:
        click.echo(f"No card for {target.strftime('%A, %b %d')}.")
        return

    if as_json:
        click.echo(json.dumps(_card_json(card), indent=2))
    else:
        click.echo(format_card(card, clients))


@main.command()
@click.argument("section")
@click.argument("text")
@click.option("--hours", type=float, default=None, help="Time spent (what I did only)")
@click.option("--client", "client_ref", default=None, help="Client tag or id (what I did only)")
@click.option("--date", "-d", "target_date", default=None, help="Card date (YYYY-MM-DD)")
def log(section: str, text: str, hours: float | None, client_ref: str | None, target_date: str | None):
    """Add an entry to a card section (did, broke, fixed, tomorrow)."""
    config, store, user_id = _context()
    target = _target_date(config, target_date)
    section = _section(section)

    try:
        client_id = None
        if client_ref:
            client = find_client(store, client_ref)
            if client is None:
                _fail(f"Unknown client {client_ref!r}")
            client_id = client.id
        card = add_card_entry(store, user_id, target, section, text, hours, client_id)
    except (StoreError, ValueError) as e:
        _fail(str(e))

    click.echo(f"Added to {section} ({len(getattr(card, section))} entries).")


@main.command()
@click.argument("section")
@click.argument("index", type=int)
@click.option("--date", "-d", "target_date", default=None, help="Card date (YYYY-MM-DD)")
def unlog(section: str, index: int, target_date: str | None):
    """Remove entry INDEX (1-based) from a card section."""
    config, store, user_id = _context()
    target = _target_date(config, target_date)
    section = _section(section)

    try:
        remove_card_entry(store, user_id, target, section, index - 1)
    except (StoreError, ValueError) as e:
        _fail(str(e))

    click.echo(f"Removed entry {index} from {section}.")


@main.command("time")
@click.argument("kind", type=click.Choice(["admin", "meeting"]))
@click.argument("hours", type=float)
@click.option("--date", "-d", "target_date", default=None, help="Card date (YYYY-MM-DD)")
def time_cmd(kind: str, hours: float, target_date: str | None):
    """Set admin or meeting hours on a card."""
    config, store, user_id = _context()
    target = _target_date(config, target_date)

    try:
        card = set_card_time(store, user_id, target, kind, hours)
    except (StoreError, ValueError) as e:
        _fail(str(e))

    click.echo(f"{kind.capitalize()} time: {getattr(card, f'{kind}_time'):.1f}h")


@main.command()
@click.option("--date", "-d", "target_date", default=None, help="Card date (YYYY-MM-DD)")
@click.confirmation_option(prompt="Are you sure you want to delete this card?")
def delete(target_date: str | None):
    """Delete a card."""
    config, store, user_id = _context()
    target = _target_date(config, target_date)

    try:
        delete_daily_card(store, user_id, target)
    except StoreError as e:
        _fail(str(e))

    click.echo(f"Deleted card for {target.isoformat()}.")


@main.command()
@click.option("--offset", type=int, default=0, help="Weeks relative to this week (-1 = last week)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def summary(offset: int, as_json: bool):
    """Weekly team summary."""
    config = load_config()
    try:
        store = get_store(config)
        week = weekly_summary(store, today(config), offset)
    except StoreError as e:
        _fail(str(e))

    if as_json:
        data = {"dates": [d.isoformat() for d in week.dates], "users": []}
        for user in week.users:
            days = {}
            for d in week.dates:
                card = week.card_for(d, user.id)
                stats = card_stats(card)
                days[d.isoformat()] = (
                    {"total_hours": stats.total_hours, "total_items": stats.total_items}
                    if card else None
                )
            data["users"].append({"id": user.id, "name": user.name, "days": days})
        click.echo(json.dumps(data, indent=2))
    else:
        click.echo(format_week(week))


# ============== Recurring tasks ==============


@main.group()
def recurring():
    """Manage recurring tasks."""
    pass


@recurring.command("list")
def recurring_list():
    """List your recurring tasks."""
    _, store, user_id = _context()
    try:
        tasks = store.list_recurring_tasks(user_id)
    except StoreError as e:
        _fail(str(e))

    if not tasks:
        click.echo("No recurring tasks.")
        return

    for task in tasks:
        hours = f" ({task.time_estimate:.1f}h)" if task.time_estimate is not None else ""
        click.echo(f"{task.id}  {task.schedule_label():24} {task.text}{hours}")


def _parse_days(value: str | None) -> list[int] | None:
    if not value:
        return None
    names = [n.lower() for n in DAY_NAMES]
    days = []
    for part in value.split(","):
        part = part.strip()
        if not part:
            continue
        if part.isdigit():
            days.append(int(part))
            continue
        if part[:3].lower() not in names:
            raise click.BadParameter(f"Unknown day {part!r}", param_hint="--days")
        days.append(names.index(part[:3].lower()))
    return days


@recurring.command("add")
@click.argument("text")
@click.option("--frequency", "-f", type=click.Choice(FREQUENCIES), default="daily")
@click.option("--days", default=None, help="Weekly days, e.g. 'mon,wed' or '1,3' (Sunday=0)")
@click.option("--day-of-month", type=int, default=None, help="Monthly day 1-31, or -1 for last day")
@click.option("--last-day", is_flag=True, help="Monthly on the last day of the month")
@click.option("--hours", type=float, default=None, help="Time estimate")
@click.option("--client", "client_ref", default=None, help="Client tag or id")
def recurring_add(
    text: str,
    frequency: str,
    days: str | None,
    day_of_month: int | None,
    last_day: bool,
    hours: float | None,
    client_ref: str | None,
):
    """Add a recurring task."""
    _, store, user_id = _context()

    try:
        client_id = None
        if client_ref:
            client = find_client(store, client_ref)
            if client is None:
                _fail(f"Unknown client {client_ref!r}")
            client_id = client.id
        task = add_recurring_task(
            store,
            RecurringTask(
                id="",
                user_id=user_id,
                text=text.strip(),
                frequency=frequency,
                time_estimate=hours,
                client_id=client_id,
                days_of_week=_parse_days(days),
                day_of_month=LAST_DAY if last_day else day_of_month,
            ),
        )
    except (StoreError, ValueError) as e:
        _fail(str(e))

    click.echo(f"Added recurring task {task.id}: {task.text} [{task.schedule_label()}]")


@recurring.command("delete")
@click.argument("task_id")
def recurring_delete(task_id: str):
    """Delete a recurring task."""
    _, store, user_id = _context()
    try:
        delete_recurring_task(store, user_id, task_id)
    except StoreError as e:
        _fail(str(e))
    click.echo(f"Deleted recurring task {task_id}.")


# ============== Clients ==============


@main.group()
def clients():
    """Manage client tags."""
    pass


@clients.command("list")
def clients_list():
    """List clients."""
    _, store, user_id = _context()
    try:
        all_clients = store.list_clients()
        user = store.get_user(user_id)
    except StoreError as e:
        _fail(str(e))

    if not all_clients:
        click.echo("No clients.")
        return

    default_id = user.default_client_id if user else None
    for client in all_clients:
        marker = "*" if client.id == default_id else " "
        click.echo(f"{marker} {client.label():12} {client.name}")


@clients.command("add")
@click.argument("tag")
@click.argument("name")
@click.option("--emoji", default="", help="Emoji shown next to the tag")
@click.option("--color", default="", help="Display colour")
def clients_add(tag: str, name: str, emoji: str, color: str):
    """Add a client."""
    _, store, _ = _context()
    try:
        client = add_client(store, Client(id="", name=name, tag=tag, emoji=emoji, color=color))
    except (StoreError, ValueError) as e:
        _fail(str(e))
    click.echo(f"Added client {client.tag} ({client.name}).")


@clients.command("edit")
@click.argument("tag")
@click.option("--name", default=None, help="New display name")
@click.option("--tag", "new_tag", default=None, help="New tag")
@click.option("--emoji", default=None, help="Emoji shown next to the tag")
@click.option("--color", default=None, help="Display colour")
def clients_edit(tag: str, name: str | None, new_tag: str | None, emoji: str | None, color: str | None):
    """Edit a client's name, tag, emoji or colour."""
    _, store, _ = _context()
    try:
        client = find_client(store, tag)
        if client is None:
            _fail(f"Unknown client {tag!r}")
        client = update_client(store, client, name=name, tag=new_tag, emoji=emoji, color=color)
    except (StoreError, ValueError) as e:
        _fail(str(e))
    click.echo(f"Updated client {client.label()} ({client.name}).")


@clients.command("delete")
@click.argument("tag")
def clients_delete(tag: str):
    """Delete a client by tag."""
    _, store, _ = _context()
    try:
        client = find_client(store, tag)
        if client is None:
            _fail(f"Unknown client {tag!r}")
        store.delete_client(client.id)
    except StoreError as e:
        _fail(str(e))
    click.echo(f"Deleted client {client.tag}.")


@clients.command("default")
@click.argument("tag", required=False)
@click.option("--clear", is_flag=True, help="Clear the default client")
def clients_default(tag: str | None, clear: bool):
    """Set the default client for new entries."""
    _, store, user_id = _context()
    try:
        if clear:
            set_default_client(store, user_id, None)
            click.echo("Default client cleared.")
            return
        if not tag:
            _fail("Give a client tag or --clear")
        client = find_client(store, tag)
        if client is None:
            _fail(f"Unknown client {tag!r}")
        set_default_client(store, user_id, client.id)
    except StoreError as e:
        _fail(str(e))
    click.echo(f"Default client: {client.label()}")


@main.command()
@click.option("--name", default=None, help="Display name shown in summaries")
@click.option("--avatar", default=None, help="Avatar image URL (empty resets to the default)")
def profile(name: str | None, avatar: str | None):
    """Show or edit your profile."""
    _, store, user_id = _context()
    try:
        if name is None and avatar is None:
            user = ensure_user(store, user_id)
        else:
            user = update_profile(store, user_id, name=name, avatar=avatar)
    except (StoreError, ValueError) as e:
        _fail(str(e))

    default = find_client(store, user.default_client_id) if user.default_client_id else None
    click.echo(f"Name: {user.name}")
    click.echo(f"Avatar: {user.avatar}")
    click.echo(f"Default client: {default.label() if default else 'none'}")


@main.command()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def bot(debug: bool):
    """Run the Telegram bot."""
    if debug:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )

    try:
        from .telegram_bot import run_bot
        click.echo("Starting Standup Telegram bot...")
        click.echo("Press Ctrl+C to stop")
        run_bot()
    except ImportError as e:
        click.echo("Error: Missing dependencies. Run 'pip install python-telegram-bot apscheduler'", err=True)
        click.echo(f"Details: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nBot stopped.")


if __name__ == "__main__":
    main()
