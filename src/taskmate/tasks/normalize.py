"""Turn a complete draft into persistable task fields."""

from datetime import datetime, timezone

from ..errors import ValidationError
from ..timeparse import normalize_user_id, parse_absolute_time, parse_relative_time
from .models import NewTask, TaskDraft


def resolve_due_time(draft: TaskDraft, now: datetime | None = None) -> datetime | None:
    """Pick the due time: ISO ``time``, then ``reminder_phrase``, then the raw text."""
    now = now or datetime.now(timezone.utc)
    if draft.time:
        due = parse_absolute_time(draft.time, now)
        if due is None:
            # The model sometimes puts a relative phrase in the time slot
            due = parse_relative_time(draft.time, now)
        if due is not None:
            return due
    if draft.reminder_phrase:
        due = parse_relative_time(draft.reminder_phrase, now)
        if due is not None:
            return due
    if draft.raw_text:
        return parse_relative_time(draft.raw_text, now)
    return None


def normalize_draft(draft: TaskDraft, now: datetime | None = None) -> NewTask:
    """Validate a draft and produce the fields of a new task.

    Raises:
        ValidationError: If the title is empty, no due time can be parsed
            or no assignee is known.
    """
    title = (draft.title or draft.task or "").strip()
    if not title:
        raise ValidationError("Task title is required.")

    due_at = resolve_due_time(draft, now)
    if due_at is None:
        raise ValidationError(
            f"Invalid time. Got time={draft.time!r}, reminder={draft.reminder_phrase!r}",
            "I couldn't work out when this task is due. Try an exact time like "
            "2025-10-20 09:00 or a relative one like 'in 30 minutes'.",
        )

    assignee = normalize_user_id(draft.assignee)
    if not assignee:
        raise ValidationError("An assignee is required.")

    assignees = [assignee]
    for raw in draft.assignees:
        user_id = normalize_user_id(raw)
        if user_id and user_id not in assignees:
            assignees.append(user_id)

    return NewTask(
        title=title,
        due_at=due_at,
        assignee=assignee,
        assignees=tuple(assignees),
        created_by=normalize_user_id(draft.created_by),
        channel_id=draft.channel_id,
    )
