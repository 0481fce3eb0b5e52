"""Tests for the Telegram bot helpers and handlers."""

import asyncio
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from standup.adapters.file_store import FileStore
from standup.config import Config
from standup.telegram_bot import (
    AuthFilter,
    parse_time,
    send_log_reminder,
    send_scheduled_card,
    setup_scheduler,
)
from standup.telegram_format import chunk_text
from standup.telegram_handlers import broke_handler, did_handler, split_hours, today_handler
from standup.workflows import add_card_entry, create_daily_card

TUESDAY = date(2024, 6, 4)


@pytest.fixture
def config(tmp_path):
    return Config(data_dir=str(tmp_path), user_id="u1", telegram_allowed_users=[42])


@pytest.fixture
def store(tmp_path):
    return FileStore(tmp_path)


def make_update(args=None):
    update = MagicMock()
    update.message.reply_text = AsyncMock()
    context = MagicMock()
    context.args = args or []
    return update, context


class TestSplitHours:
    def test_leading_hours(self):
        assert split_hours(["1.5h", "Fixed", "the", "build"]) == (1.5, "Fixed the build")

    def test_whole_hours_uppercase(self):
        assert split_hours(["2H", "Review"]) == (2.0, "Review")

    def test_no_hours(self):
        assert split_hours(["Shipped", "1.5h"]) == (None, "Shipped 1.5h")

    def test_empty(self):
        assert split_hours([]) == (None, "")


class TestChunkText:
    def test_short_text_single_chunk(self):
        assert chunk_text("hello\nworld") == ["hello\nworld"]

    def test_splits_on_lines(self):
        chunks = chunk_text("aaaa\nbbbb\ncccc\n", size=10)
        assert chunks == ["aaaa\nbbbb\n", "cccc\n"]

    def test_splits_long_lines(self):
        chunks = chunk_text("x" * 25, size=10)
        assert chunks == ["x" * 10, "x" * 10, "x" * 5]


class TestAuthFilter:
    def test_open_when_no_users(self):
        assert AuthFilter([]).check_update(MagicMock()) is True

    def test_allows_listed_user(self):
        update = MagicMock()
        update.effective_user.id = 42
        assert AuthFilter([42]).check_update(update) is True

    def test_rejects_other_user(self):
        update = MagicMock()
        update.effective_user.id = 7
        assert AuthFilter([42]).check_update(update) is False

    def test_rejects_missing_user(self):
        update = MagicMock()
        update.effective_user = None
        assert AuthFilter([42]).check_update(update) is False


class TestParseTime:
    def test_valid(self):
        assert parse_time("08:05") == (8, 5)

    @pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "8"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_time(value)


class TestHandlers:
    @pytest.fixture(autouse=True)
    def patched(self, config):
        with patch("standup.telegram_handlers.load_config", return_value=config), \
                patch("standup.telegram_handlers.today", return_value=TUESDAY):
            yield

    def test_did_logs_hours(self, store):
        create_daily_card(store, "u1", TUESDAY)
        update, context = make_update(["1.5h", "Fixed", "login"])

        asyncio.run(did_handler(update, context))

        item = store.get_card("u1", TUESDAY).what_i_did[-1]
        assert item.text == "Fixed login"
        assert item.time_estimate == 1.5
        update.message.reply_text.assert_awaited_once_with("Added (1 in did).")

    def test_broke_keeps_hours_token_as_text(self, store):
        create_daily_card(store, "u1", TUESDAY)
        update, context = make_update(["2h", "outage"])

        asyncio.run(broke_handler(update, context))

        assert store.get_card("u1", TUESDAY).what_broke == ["2h outage"]

    def test_usage_without_text(self):
        update, context = make_update([])
        asyncio.run(did_handler(update, context))
        update.message.reply_text.assert_awaited_once_with("Usage: /did text")

    def test_no_card_yet(self):
        update, context = make_update(["Something"])
        asyncio.run(did_handler(update, context))
        assert "Use /new" in update.message.reply_text.await_args[0][0]

    def test_today_without_card(self):
        update, context = make_update()
        asyncio.run(today_handler(update, context))
        assert "No card for today" in update.message.reply_text.await_args[0][0]


class TestScheduledJobs:
    @pytest.fixture(autouse=True)
    def patched_today(self):
        with patch("standup.telegram_bot.today", return_value=TUESDAY):
            yield

    def test_scheduled_card_created_and_announced(self, config, store):
        bot = MagicMock()
        bot.send_message = AsyncMock()

        asyncio.run(send_scheduled_card(bot, config))

        assert store.get_card("u1", TUESDAY) is not None
        bot.send_message.assert_awaited_once()
        assert bot.send_message.await_args[1]["chat_id"] == 42

    def test_scheduled_card_skips_existing(self, config, store):
        create_daily_card(store, "u1", TUESDAY)
        bot = MagicMock()
        bot.send_message = AsyncMock()

        asyncio.run(send_scheduled_card(bot, config))

        bot.send_message.assert_not_awaited()

    def test_reminder_when_nothing_logged(self, config):
        bot = MagicMock()
        bot.send_message = AsyncMock()
        asyncio.run(send_log_reminder(bot, config))
        assert "Time to log your day" in bot.send_message.await_args[1]["text"]

    def test_no_reminder_after_logging(self, config, store):
        create_daily_card(store, "u1", TUESDAY)
        add_card_entry(store, "u1", TUESDAY, "what_i_did", "Work")
        bot = MagicMock()
        bot.send_message = AsyncMock()

        asyncio.run(send_log_reminder(bot, config))

        bot.send_message.assert_not_awaited()


class TestSetupScheduler:
    def test_schedules_card_and_reminder(self, config):
        scheduler = setup_scheduler(MagicMock(), config)
        assert sorted(job.id for job in scheduler.get_jobs()) == ["daily_card", "log_reminder"]

    def test_invalid_time_skips_job(self, config):
        config.telegram_reminder_time = "25:00"
        scheduler = setup_scheduler(MagicMock(), config)
        assert [job.id for job in scheduler.get_jobs()] == ["daily_card"]

    def test_no_jobs_without_allowed_users(self, config):
        config.telegram_allowed_users = []
        assert setup_scheduler(MagicMock(), config).get_jobs() == []
