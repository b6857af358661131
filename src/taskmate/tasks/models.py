"""Data models for tasks and task drafts."""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class Task:
    """A persisted task.

    Attributes:
        id: Opaque, stable identifier.
        title: Non-empty task title.
        due_at: Timezone-aware due time.
        assignee: Primary responsible user id.
        assignees: All responsible user ids, primary first.
        created_by: User id of the requester.
        channel_id: Channel the task was created from.
        completed: Completion flag.
        not_completed_reason: Optional explanation when not completed.
        reminder_sent_at: Set once the deadline reminder went out.
        created_at: Creation time.
    """

    id: str
    title: str
    due_at: datetime
    assignee: str
    assignees: tuple[str, ...]
    created_by: str
    channel_id: str
    completed: bool = False
    not_completed_reason: str | None = None
    reminder_sent_at: datetime | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class NewTask:
    """Fully normalized task fields, ready to be persisted."""

    title: str
    due_at: datetime
    assignee: str
    assignees: tuple[str, ...]
    created_by: str
    channel_id: str


@dataclass(frozen=True)
class Extraction:
    """Structured fields the language model pulled out of an utterance.

    Any field may be missing; the sanitizer and slot filler deal with that.
    """

    title: str | None = None
    time: str | None = None
    reminder_phrase: str | None = None
    assignee: str | None = None
    assignees: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Extraction":
        """Build from a loosely-typed JSON object, ignoring junk values."""

        def text(key: str) -> str | None:
            value = data.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
            return None

        raw_assignees = data.get("assignees")
        assignees: tuple[str, ...] = ()
        if isinstance(raw_assignees, list):
            assignees = tuple(
                a.strip() for a in raw_assignees if isinstance(a, str) and a.strip()
            )

        return cls(
            title=text("title"),
            time=text("time"),
            reminder_phrase=text("reminder_time") or text("reminderPhrase"),
            assignee=text("assignee"),
            assignees=assignees,
        )


@dataclass(frozen=True)
class TaskDraft:
    """A partially specified task accumulated over a conversation."""

    channel_id: str
    created_by: str
    title: str | None = None
    task: str | None = None
    time: str | None = None
    reminder_phrase: str | None = None
    assignee: str | None = None
    assignees: tuple[str, ...] = field(default_factory=tuple)
    raw_text: str | None = None

    def merge(self, incoming: "TaskDraft") -> "TaskDraft":
        """Overlay non-empty fields from ``incoming``.

        Channel, creator and the original utterance always come from self.
        """
        updates: dict[str, Any] = {}
        for f in fields(self):
            if f.name in ("channel_id", "created_by", "raw_text"):
                continue
            value = getattr(incoming, f.name)
            if value:
                updates[f.name] = value
        if not self.raw_text and incoming.raw_text:
            updates["raw_text"] = incoming.raw_text
        return replace(self, **updates)
