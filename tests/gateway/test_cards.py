"""Tests for task cards."""

from datetime import datetime, timezone

from taskmate.gateway.base import Card, InboundMessage, message_text
from taskmate.gateway.cards import (
    ACTION_COMPLETE,
    build_confirmation_card,
    build_reminder_card,
    build_task_list,
    format_assignees,
    format_time,
)
from taskmate.tasks.models import Task


def make_task(**kwargs) -> Task:
    fields = {
        "id": "abc123",
        "title": "Ship the report",
        "due_at": datetime(2025, 10, 20, 9, 30, tzinfo=timezone.utc),
        "assignee": "alexkim",
        "assignees": ("alexkim", "jordan_p"),
        "created_by": "samlee",
        "channel_id": "C1",
    }
    fields.update(kwargs)
    return Task(**fields)


def test_format_time():
    assert format_time(datetime(2025, 10, 20, 9, 30, tzinfo=timezone.utc)) == "2025-10-20 09:30 UTC"


def test_format_assignees():
    assert format_assignees(make_task()) == "@alexkim, @jordan_p"
    assert format_assignees(make_task(assignees=())) == "@alexkim"


def test_confirmation_card():
    card = build_confirmation_card(make_task())
    assert card.text.startswith("✅ Task created successfully!")
    assert "• Title: Ship the report" in card.text
    assert "• Time: 2025-10-20 09:30 UTC" in card.text
    assert len(card.buttons) == 1
    assert card.buttons[0].action_id == ACTION_COMPLETE
    assert card.buttons[0].value == "abc123"


def test_reminder_card_with_intro():
    card = build_reminder_card(make_task(), intro="Heads up!")
    assert card.text.splitlines()[:2] == ["Heads up!", "🔔 Task Reminder"]
    assert len(card.buttons) == 4


def test_reminder_card_without_intro():
    assert build_reminder_card(make_task()).text.startswith("🔔 Task Reminder")


def test_task_list_pending_header():
    messages = build_task_list([make_task(), make_task(id="def456")], "pending")
    assert messages[0] == "📋 Pending Tasks (2)"
    assert all(isinstance(m, Card) for m in messages[1:])


def test_task_list_empty_scopes():
    assert build_task_list([], "pending") == ["📋 You have no pending tasks!"]
    assert build_task_list([], "all") == ["📋 You have no tasks!"]


def test_message_text():
    assert message_text("plain") == "plain"
    assert message_text(Card(text="card body")) == "card body"


def test_conversation_key():
    assert InboundMessage(text="hi", author_id="u", channel_id="C1").conversation_key == "C1"
    threaded = InboundMessage(text="hi", author_id="u", channel_id="C1", thread_id="42")
    assert threaded.conversation_key == "C1:42"
