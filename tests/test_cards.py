"""Tests for core activity card logic."""

from datetime import date, datetime, timezone

import pytest

from standup.core.cards import (
    ActivityCard,
    TaskItem,
    add_entry,
    build_initial_items,
    card_stats,
    new_card,
    remove_entry,
    set_time,
)
from standup.core.recurring import RecurringTask


@pytest.fixture
def today():
    return date(2024, 6, 4)


@pytest.fixture
def now():
    return datetime(2024, 6, 4, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def definitions():
    return [
        RecurringTask(
            id="r1", user_id="u1", text="Standup", frequency="daily",
            time_estimate=0.25, client_id="c1",
        ),
        RecurringTask(
            id="r2", user_id="u1", text="Review PRs", frequency="weekly",
            days_of_week=[2], time_estimate=1.0,
        ),
    ]


@pytest.fixture
def yesterday_card(today):
    return ActivityCard(
        id="card-1",
        user_id="u1",
        date=date(2024, 6, 3),
        tasks_for_tomorrow=["Ship PR"],
    )


@pytest.fixture
def card(today, now):
    return ActivityCard(
        id="card-2",
        user_id="u1",
        date=today,
        what_i_did=[TaskItem(text="Standup", time_estimate=0.5)],
        what_broke=["CI"],
        last_updated=now,
    )


class TestBuildInitialItems:
    def test_recurring_then_carried_over(self, definitions, yesterday_card):
        items = build_initial_items(definitions, yesterday_card, "default-client")

        assert len(items) == 3
        assert [i.text for i in items] == ["Standup", "Review PRs", "Ship PR"]

        assert items[0].is_recurring is True
        assert items[0].recurring_task_id == "r1"
        assert items[0].time_estimate == 0.25
        assert items[0].client_id == "c1"

        assert items[1].is_recurring is True
        assert items[1].recurring_task_id == "r2"
        assert items[1].client_id is None

        assert items[2].is_recurring is False
        assert items[2].recurring_task_id is None
        assert items[2].time_estimate is None
        assert items[2].client_id == "default-client"

    def test_empty_inputs(self):
        assert build_initial_items([], None, None) == []

    def test_no_previous_card(self, definitions):
        items = build_initial_items(definitions, None, "default-client")
        assert [i.recurring_task_id for i in items] == ["r1", "r2"]

    def test_no_default_client(self, yesterday_card):
        items = build_initial_items([], yesterday_card, None)
        assert items == [TaskItem(text="Ship PR")]

    def test_no_deduplication(self, definitions):
        previous = ActivityCard(
            id="c", user_id="u1", date=date(2024, 6, 3), tasks_for_tomorrow=["Standup", "Standup"]
        )
        items = build_initial_items(definitions[:1], previous)
        assert [i.text for i in items] == ["Standup", "Standup", "Standup"]

    def test_does_not_mutate_inputs(self, definitions, yesterday_card):
        build_initial_items(definitions, yesterday_card, "x")
        assert yesterday_card.tasks_for_tomorrow == ["Ship PR"]
        assert definitions[0].text == "Standup"


class TestNewCard:
    def test_fresh_card(self, today, now):
        items = [TaskItem(text="a")]
        card = new_card("u1", today, items, now)
        assert card.id == ""
        assert card.date == today
        assert card.what_i_did == items
        assert card.what_broke == []
        assert card.how_i_fixed == []
        assert card.tasks_for_tomorrow == []
        assert card.admin_time == 0
        assert card.meeting_time == 0
        assert card.last_updated == now


class TestCardStats:
    def test_none(self):
        stats = card_stats(None)
        assert stats.total_items == 0
        assert stats.total_hours == 0

    def test_counts_all_sections_and_times(self, today):
        card = ActivityCard(
            id="c",
            user_id="u1",
            date=today,
            what_i_did=[TaskItem("a", 1.5), TaskItem("b"), TaskItem("c", 0.5)],
            what_broke=["x"],
            how_i_fixed=["y"],
            tasks_for_tomorrow=["z", "w"],
            admin_time=0.5,
            meeting_time=1.0,
        )
        stats = card_stats(card)
        assert stats.total_items == 7
        assert stats.total_hours == pytest.approx(3.5)


class TestCardEditing:
    def test_add_what_i_did_rounds_hours(self, card, now):
        updated = add_entry(card, "what_i_did", " Fix login ", 1.26, "c1", now=now)
        assert updated.what_i_did[-1] == TaskItem(text="Fix login", time_estimate=1.3, client_id="c1")
        assert len(card.what_i_did) == 1

    def test_add_text_section(self, card, now):
        updated = add_entry(card, "how_i_fixed", "Restarted runner", now=now)
        assert updated.how_i_fixed == ["Restarted runner"]

    def test_add_bumps_last_updated(self, card):
        later = datetime(2024, 6, 4, 17, 0, tzinfo=timezone.utc)
        assert add_entry(card, "what_broke", "Deploy", now=later).last_updated == later

    def test_add_rejects_unknown_section(self, card):
        with pytest.raises(ValueError, match="Unknown section"):
            add_entry(card, "notes", "hello")

    def test_add_rejects_empty_text(self, card):
        with pytest.raises(ValueError, match="must not be empty"):
            add_entry(card, "what_broke", "   ")

    def test_add_rejects_negative_hours(self, card):
        with pytest.raises(ValueError, match="non-negative"):
            add_entry(card, "what_i_did", "x", -1)

    def test_remove_entry(self, card, now):
        updated = remove_entry(card, "what_broke", 0, now=now)
        assert updated.what_broke == []
        assert card.what_broke == ["CI"]

    def test_remove_out_of_range(self, card):
        with pytest.raises(ValueError, match="No entry 3"):
            remove_entry(card, "what_broke", 3)

    def test_set_time(self, card, now):
        updated = set_time(card, "meeting", 1.04, now=now)
        assert updated.meeting_time == 1.0
        assert updated.admin_time == 0

    def test_set_time_rejects_negative(self, card):
        with pytest.raises(ValueError):
            set_time(card, "admin", -0.5)

    def test_set_time_rejects_unknown_kind(self, card):
        with pytest.raises(ValueError, match="Unknown time kind"):
            set_time(card, "lunch", 1)


class TestCardRows:
    def test_from_row_accepts_timestamp_date(self):
        card = ActivityCard.from_row(
            {
                "id": "c1",
                "user_id": "u1",
                "date": "2024-06-03T14:22:01.123Z",
                "last_updated": "2024-06-03T14:22:01.123Z",
                "what_i_did": [{"text": "Standup", "time_estimate": 0.5, "is_recurring": True,
                                "recurring_task_id": "r1"}],
                "what_broke": None,
                "admin_time": 1,
            }
        )
        assert card.date == date(2024, 6, 3)
        assert card.last_updated.tzinfo is not None
        assert card.what_i_did[0].is_recurring is True
        assert card.what_broke == []
        assert card.admin_time == 1.0

    def test_task_item_accepts_plain_string(self):
        assert TaskItem.from_row("Legacy entry") == TaskItem(text="Legacy entry")

    def test_task_item_row_omits_unset_keys(self):
        assert TaskItem(text="a").to_row() == {"text": "a"}

    def test_to_row_uses_plain_date(self, card):
        row = card.to_row()
        assert row["date"] == "2024-06-04"
        assert row["id"] == "card-2"
        assert row["what_i_did"] == [{"text": "Standup", "time_estimate": 0.5}]
