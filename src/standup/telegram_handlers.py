"""Telegram command handlers."""

import logging
import re

from telegram import Update
from telegram.ext import ContextTypes

from .config import load_config
from .core.cards import HOW_I_FIXED, TASKS_FOR_TOMORROW, WHAT_BROKE, WHAT_I_DID
from .core.report import format_card, format_week
from .errors import CardNotFoundError, DuplicateCardError, StoreError
from .telegram_format import send_markdown
from .workflows import (
    add_card_entry,
    create_daily_card,
    get_store,
    resolve_user_id,
    today,
    weekly_summary,
)

logger = logging.getLogger(__name__)

# "/did 1.5h Fixed the build" - leading hours token
HOURS_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)h$", re.IGNORECASE)

COMMANDS_TEXT = (
    "/new - Start today's card\n"
    "/today - Show today's card\n"
    "/did [1.5h] text - Log something you did\n"
    "/broke text - Log something that broke\n"
    "/fixed text - Log how you fixed it\n"
    "/tomorrow text - Plan a task for tomorrow\n"
    "/summary - This week's team summary\n"
    "/help - Show all commands"
)


def split_hours(args: list[str]) -> tuple[float | None, str]:
    """Split an optional leading hours token ('1.5h') from the entry text."""
    if args:
        match = HOURS_PATTERN.match(args[0])
        if match:
            return float(match.group(1)), " ".join(args[1:]).strip()
    return None, " ".join(args).strip()


def _session():
    """Config, store and acting user for a handler."""
    config = load_config()
    return config, get_store(config), resolve_user_id(config)


async def unauthorized_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Reply to anyone not on the allow-list."""
    sender = update.effective_user
    logger.warning(f"Rejected message from Telegram user {sender.id if sender else 'unknown'}")
    if update.message:
        await update.message.reply_text(
            "This standup bot is private.\n"
            "Ask the owner to add your Telegram user id to TELEGRAM_ALLOWED_USERS."
        )


# ============== Simple Commands ==============


async def start_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /start command."""
    await update.message.reply_text(
        "Hey! I keep your daily standup card.\n\n"
        "Commands:\n" + COMMANDS_TEXT
    )


async def help_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /help command."""
    await update.message.reply_text("Standup Commands\n\n" + COMMANDS_TEXT)


async def new_card_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /new command - create today's card."""
    try:
        config, store, user_id = _session()
        card = create_daily_card(store, user_id, today(config))
        clients = {c.id: c for c in store.list_clients()}
    except DuplicateCardError:
        await update.message.reply_text("You already have a card for today. Use /today to see it.")
        return
    except StoreError as e:
        logger.error(f"Failed to create card: {e}")
        await update.message.reply_text(f"Failed to create card: {e}")
        return

    await send_markdown(update.message, format_card(card, clients))


async def today_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /today command - show today's card."""
    try:
        config, store, user_id = _session()
        card = store.get_card(user_id, today(config))
        clients = {c.id: c for c in store.list_clients()}
    except StoreError as e:
        logger.error(f"Failed to fetch card: {e}")
        await update.message.reply_text(f"Failed to fetch card: {e}")
        return

    if card is None:
        await update.message.reply_text("No card for today yet. Use /new to start one.")
        return

    await send_markdown(update.message, format_card(card, clients))


async def _log_entry(update: Update, context: ContextTypes.DEFAULT_TYPE, section: str, label: str):
    """Shared handler body for the section logging commands."""
    args = context.args or []
    if section == WHAT_I_DID:
        hours, text = split_hours(args)
    else:
        hours, text = None, " ".join(args).strip()

    if not text:
        await update.message.reply_text(f"Usage: /{label} text")
        return

    try:
        config, store, user_id = _session()
        card = add_card_entry(store, user_id, today(config), section, text, hours)
    except CardNotFoundError:
        await update.message.reply_text("No card for today yet. Use /new to start one.")
        return
    except (StoreError, ValueError) as e:
        logger.error(f"Failed to log {section}: {e}")
        await update.message.reply_text(f"Failed to save: {e}")
        return

    await update.message.reply_text(f"Added ({len(getattr(card, section))} in {label}).")


async def did_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /did command."""
    await _log_entry(update, context, WHAT_I_DID, "did")


async def broke_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /broke command."""
    await _log_entry(update, context, WHAT_BROKE, "broke")


async def fixed_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /fixed command."""
    await _log_entry(update, context, HOW_I_FIXED, "fixed")


async def tomorrow_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /tomorrow command."""
    await _log_entry(update, context, TASKS_FOR_TOMORROW, "tomorrow")


async def summary_handler(update: Update, context: ContextTypes.DEFAULT_TYPE):
    """Handle /summary command - weekly team summary."""
    try:
        config = load_config()
        week = weekly_summary(get_store(config), today(config))
    except StoreError as e:
        logger.error(f"Failed to build summary: {e}")
        await update.message.reply_text(f"Failed to build summary: {e}")
        return

    await send_markdown(update.message, format_week(week))
