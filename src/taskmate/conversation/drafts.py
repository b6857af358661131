"""Pending task drafts and the missing-field bookkeeping around them."""

import time
from dataclasses import dataclass, field
from enum import Enum

from ..tasks.models import TaskDraft
from ..tasks.normalize import resolve_due_time
from ..timeparse import format_mention


class MissingField(Enum):
    """Required task fields the slot filler can ask for."""

    TITLE = "title"
    TIME = "time"
    ASSIGNEE = "assignee"


# Time changes scheduling the most; a placeholder title hurts the least
QUESTION_PRIORITY = (MissingField.TIME, MissingField.ASSIGNEE, MissingField.TITLE)


def compute_missing(draft: TaskDraft) -> set[MissingField]:
    """Return the required fields the draft doesn't have yet."""
    missing: set[MissingField] = set()

    if not (draft.title or draft.task or "").strip():
        missing.add(MissingField.TITLE)

    if resolve_due_time(draft) is None:
        missing.add(MissingField.TIME)

    if not (draft.assignee or "").strip():
        missing.add(MissingField.ASSIGNEE)

    return missing


def next_missing(missing: set[MissingField]) -> MissingField | None:
    """Pick the field to ask about next."""
    for f in QUESTION_PRIORITY:
        if f in missing:
            return f
    return None


def build_followup_question(draft: TaskDraft, missing: set[MissingField]) -> str:
    """Ask for the next missing field, restating what is already known."""
    title = (draft.title or draft.task or "").strip()
    who = format_mention(draft.assignee) if draft.assignee else "<unspecified>"
    when = draft.time or draft.reminder_phrase or "<unspecified>"

    target = next_missing(missing)
    if target is MissingField.TIME:
        subject = f"“{title}”" if title else "this task"
        return (
            f"When should I schedule {subject}? Assignee so far: {who}. "
            "You can give an exact time (e.g. 2025-10-20 09:00) or a relative one "
            "(e.g. in 30 minutes)."
        )
    if target is MissingField.ASSIGNEE:
        subject = f"“{title}”" if title else "this task"
        return (
            f"Who should be responsible for {subject} (due {when})? "
            "If it's you, say “me”. Otherwise @mention the assignee (e.g. @alexkim)."
        )
    return (
        f"Got it so far: assignee is {who}, time is {when}. "
        "What's the task in one clear sentence?"
    )


@dataclass
class PendingContext:
    """An open draft and the fields it still lacks."""

    draft: TaskDraft
    missing: set[MissingField]
    updated_at: float = field(default_factory=time.time)


class DraftStore:
    """Open drafts keyed by (channel, user).

    At most one draft is open per key. With a TTL, drafts idle longer than
    ``ttl_seconds`` are dropped the next time they are looked up.
    """

    def __init__(self, ttl_seconds: float | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._pending: dict[tuple[str, str], PendingContext] = {}

    def get(self, channel_id: str, user_id: str) -> PendingContext | None:
        key = (channel_id, user_id)
        ctx = self._pending.get(key)
        if ctx is None:
            return None
        if self.ttl_seconds is not None and time.time() - ctx.updated_at > self.ttl_seconds:
            del self._pending[key]
            return None
        return ctx

    def set(self, channel_id: str, user_id: str, ctx: PendingContext) -> None:
        ctx.updated_at = time.time()
        self._pending[(channel_id, user_id)] = ctx

    def clear(self, channel_id: str, user_id: str) -> bool:
        """Drop the open draft. Returns True if there was one."""
        return self._pending.pop((channel_id, user_id), None) is not None

    def __len__(self) -> int:
        return len(self._pending)
