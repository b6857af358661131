"""Tests for draft normalization."""

from datetime import datetime, timedelta, timezone

import pytest

from taskmate.errors import ValidationError
from taskmate.tasks.models import TaskDraft
from taskmate.tasks.normalize import normalize_draft, resolve_due_time


def draft(**kwargs) -> TaskDraft:
    base = {"channel_id": "C1", "created_by": "samlee", "title": "Ship the report", "assignee": "samlee"}
    base.update(kwargs)
    return TaskDraft(**base)


class TestResolveDueTime:
    def test_iso_time_first(self, now: datetime):
        d = draft(time="2025-10-20T14:00:00Z", reminder_phrase="in 15 minutes")
        assert resolve_due_time(d, now) == datetime(2025, 10, 20, 14, 0, tzinfo=timezone.utc)

    def test_relative_phrase_when_no_iso(self, now: datetime):
        d = draft(reminder_phrase="in 15 minutes", raw_text="remind me in 2 hours")
        assert resolve_due_time(d, now) == now + timedelta(minutes=15)

    def test_raw_text_last(self, now: datetime):
        d = draft(raw_text="remind me in 2 hours")
        assert resolve_due_time(d, now) == now + timedelta(hours=2)

    def test_relative_phrase_in_time_field(self, now: datetime):
        assert resolve_due_time(draft(time="in 10 minutes"), now) == now + timedelta(minutes=10)

    def test_unparseable_time_falls_through(self, now: datetime):
        d = draft(time="sometime soon", reminder_phrase="in 5 minutes")
        assert resolve_due_time(d, now) == now + timedelta(minutes=5)

    def test_nothing_parseable(self, now: datetime):
        assert resolve_due_time(draft(raw_text="ship it"), now) is None


class TestNormalizeDraft:
    def test_fields(self, now: datetime):
        result = normalize_draft(draft(time="2025-10-20T14:00:00Z", assignee="@alexkim"), now)
        assert result.title == "Ship the report"
        assert result.assignee == "alexkim"
        assert result.assignees == ("alexkim",)
        assert result.created_by == "samlee"
        assert result.channel_id == "C1"

    def test_primary_assignee_first_and_deduplicated(self, now: datetime):
        d = draft(
            reminder_phrase="in 1 hour",
            assignee="@alexkim",
            assignees=("@samlee", "alexkim", "@samlee"),
        )
        assert normalize_draft(d, now).assignees == ("alexkim", "samlee")

    def test_falls_back_to_task_text(self, now: datetime):
        d = draft(title=None, task="Book the venue", reminder_phrase="in 1 hour")
        assert normalize_draft(d, now).title == "Book the venue"

    def test_empty_title(self, now: datetime):
        with pytest.raises(ValidationError, match="title"):
            normalize_draft(draft(title="  ", reminder_phrase="in 1 hour"), now)

    def test_no_time(self, now: datetime):
        with pytest.raises(ValidationError) as exc_info:
            normalize_draft(draft(raw_text="ship it"), now)
        assert "in 30 minutes" in exc_info.value.user_message

    def test_no_assignee(self, now: datetime):
        with pytest.raises(ValidationError, match="assignee"):
            normalize_draft(draft(assignee=None, reminder_phrase="in 1 hour"), now)
