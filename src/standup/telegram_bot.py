"""Standup Telegram bot: command routing and scheduled card jobs."""

import logging

from telegram import Bot, Update
from telegram.ext import Application, CommandHandler, MessageHandler, filters
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from .config import Config, load_config
from .errors import DuplicateCardError, StoreError
from .telegram_handlers import (
    broke_handler,
    did_handler,
    fixed_handler,
    help_handler,
    new_card_handler,
    start_handler,
    summary_handler,
    today_handler,
    tomorrow_handler,
    unauthorized_handler,
)
from .workflows import create_daily_card, get_store, resolve_user_id, today

logger = logging.getLogger(__name__)

COMMANDS = {
    "start": start_handler,
    "help": help_handler,
    "new": new_card_handler,
    "today": today_handler,
    "did": did_handler,
    "broke": broke_handler,
    "fixed": fixed_handler,
    "tomorrow": tomorrow_handler,
    "summary": summary_handler,
}

WORKDAYS = "mon-fri"


class AuthFilter(filters.BaseFilter):
    """Pass updates from allow-listed Telegram users. An empty list allows everyone."""

    def __init__(self, allowed_users: list[int]):
        super().__init__()
        self.allowed_users = set(allowed_users)

    def check_update(self, update: Update) -> bool:
        if not self.allowed_users:
            return True
        sender = update.effective_user
        return sender is not None and sender.id in self.allowed_users


def parse_time(value: str) -> tuple[int, int]:
    """Parse 'HH:MM' into (hour, minute). Raises ValueError on bad input."""
    hour, minute = map(int, value.split(":"))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Time out of range: {value}")
    return hour, minute


def create_application(config: Config | None = None) -> Application:
    """Build the bot application with every standup command behind the allow-list."""
    config = config or load_config()
    if not config.telegram_bot_token:
        raise ValueError(
            "TELEGRAM_BOT_TOKEN not configured. "
            "Create a bot with @BotFather and put its token in standup.conf"
        )

    app = Application.builder().token(config.telegram_bot_token).build()
    allowed = AuthFilter(config.telegram_allowed_users)

    for name, handler in COMMANDS.items():
        app.add_handler(CommandHandler(name, handler, filters=allowed))

    if config.telegram_allowed_users:
        app.add_handler(MessageHandler(~allowed & filters.ALL, unauthorized_handler))

    return app


def _add_weekday_job(scheduler: AsyncIOScheduler, job_id: str, func, at: str, args: list) -> None:
    try:
        hour, minute = parse_time(at)
    except ValueError:
        logger.warning(f"Invalid time {at!r} for {job_id}, job not scheduled")
        return
    scheduler.add_job(
        func,
        CronTrigger(hour=hour, minute=minute, day_of_week=WORKDAYS),
        args=args,
        id=job_id,
    )
    logger.info(f"Scheduled {job_id} at {hour:02d}:{minute:02d} on weekdays")


def setup_scheduler(app: Application, config: Config | None = None) -> AsyncIOScheduler:
    """Schedule the morning card and the evening logging reminder."""
    config = config or load_config()
    scheduler = AsyncIOScheduler(timezone=config.timezone or "America/Toronto")

    if not config.telegram_allowed_users:
        logger.info("No allowed users to notify, skipping scheduled jobs")
        return scheduler

    if config.telegram_card_time:
        _add_weekday_job(
            scheduler, "daily_card", send_scheduled_card, config.telegram_card_time, [app.bot, config]
        )
    if config.telegram_reminder_time:
        _add_weekday_job(
            scheduler, "log_reminder", send_log_reminder, config.telegram_reminder_time, [app.bot, config]
        )

    return scheduler


async def _broadcast(bot: Bot, user_ids: list[int], text: str) -> None:
    for user_id in user_ids:
        try:
            await bot.send_message(chat_id=user_id, text=text)
        except Exception as e:
            logger.error(f"Failed to message user {user_id}: {e}")


async def send_scheduled_card(bot: Bot, config: Config):
    """Create today's card and tell authorized users what it was seeded with."""
    logger.info("Creating scheduled daily card")

    try:
        store = get_store(config)
        card = create_daily_card(store, resolve_user_id(config), today(config))
    except DuplicateCardError:
        logger.info("Card already exists for today, skipping")
        return
    except StoreError as e:
        logger.error(f"Scheduled card creation failed: {e}")
        return

    recurring = sum(1 for i in card.what_i_did if i.is_recurring)
    carried = len(card.what_i_did) - recurring
    await _broadcast(
        bot,
        config.telegram_allowed_users,
        f"Good morning! Today's card is ready with {recurring} recurring and "
        f"{carried} carried-over task(s).\n\nUse /today to see it.",
    )


async def send_log_reminder(bot: Bot, config: Config):
    """Remind authorized users to log their day if today's card is still empty."""
    try:
        store = get_store(config)
        card = store.get_card(resolve_user_id(config), today(config))
    except StoreError as e:
        logger.error(f"Reminder check failed: {e}")
        return

    if card is not None and card.what_i_did:
        logger.info("Today's card already has entries, skipping reminder")
        return

    logger.info("Sending log reminder")
    await _broadcast(
        bot,
        config.telegram_allowed_users,
        "Time to log your day!\n\nUse /new to start a card, then /did, /broke, /fixed and /tomorrow.",
    )


def run_bot(config: Config | None = None):
    """Start polling with the scheduler attached to the bot's event loop."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.INFO,
    )

    config = config or load_config()
    app = create_application(config)
    scheduler = setup_scheduler(app, config)

    async def start_jobs(application: Application) -> None:
        scheduler.start()
        logger.info(f"Scheduler started with {len(scheduler.get_jobs())} job(s)")

    app.post_init = start_jobs

    if not config.telegram_allowed_users:
        logger.warning("TELEGRAM_ALLOWED_USERS is empty, any Telegram user can write to the card")

    logger.info("Starting Standup Telegram bot")
    app.run_polling(allowed_updates=Update.ALL_TYPES)
