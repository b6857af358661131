"""Slot-filling engine: turn utterances into complete tasks over several turns."""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone

from ..errors import ExtractionFailure
from ..gateway.base import OutgoingMessage
from ..gateway.cards import build_confirmation_card
from ..logging import get_logger
from ..tasks.extractor import TaskExtractor
from ..tasks.models import Extraction, Task
from ..tasks.normalize import normalize_draft
from ..tasks.sanitizer import draft_from_extraction, sanitize, strip_bot_mention
from ..tasks.store import TaskStore
from ..timeparse import parse_relative_time
from .drafts import (
    DraftStore,
    MissingField,
    PendingContext,
    build_followup_question,
    compute_missing,
)

logger = logging.getLogger(__name__)


@dataclass
class SlotFillResult:
    """What happened to one utterance.

    Either ``task`` is set (the draft was finalized and persisted) or
    ``reply`` is a follow-up question and ``missing`` lists the open fields.
    """

    reply: OutgoingMessage
    task: Task | None = None
    missing: set[MissingField] = field(default_factory=set)

    @property
    def finalized(self) -> bool:
        return self.task is not None


class SlotFillingEngine:
    """Tracks open drafts per (channel, user) and asks for missing fields."""

    def __init__(
        self,
        extractor: TaskExtractor,
        store: TaskStore,
        drafts: DraftStore | None = None,
        bot_id: str | None = None,
        default_to_requester: bool = True,
    ) -> None:
        self.extractor = extractor
        self.store = store
        self.drafts = drafts if drafts is not None else DraftStore()
        self.bot_id = bot_id
        self.default_to_requester = default_to_requester
        self.json_logger = get_logger()

    def has_pending(self, channel_id: str, user_id: str) -> bool:
        return self.drafts.get(channel_id, user_id) is not None

    def cancel(self, channel_id: str, user_id: str) -> bool:
        """Abandon the open draft, if any."""
        cancelled = self.drafts.clear(channel_id, user_id)
        if cancelled:
            self.json_logger.log("draft_cancelled", chat_id=channel_id, user_id=user_id)
        return cancelled

    async def handle(
        self,
        text: str,
        channel_id: str,
        user_id: str,
        now: datetime | None = None,
    ) -> SlotFillResult:
        """Process one utterance from a user.

        Raises:
            ExtractionFailure: If extraction fails and there is no open draft
                to fall back on.
            ValidationError: If a complete draft still fails validation.
            PersistenceError: If the task cannot be saved.
        """
        now = now or datetime.now(timezone.utc)
        pending = self.drafts.get(channel_id, user_id)
        text_without_bot = strip_bot_mention(text, self.bot_id)

        try:
            extraction = await self.extractor.extract(text_without_bot, now)
        except ExtractionFailure as e:
            if pending is None:
                raise
            # A follow-up like "me" or "in 10 minutes" still carries meaning
            logger.warning(f"Extraction failed during follow-up, using raw reply: {e}")
            extraction = Extraction()

        if (
            pending is not None
            and not extraction.time
            and not extraction.reminder_phrase
            and parse_relative_time(text_without_bot, now) is not None
        ):
            extraction = Extraction(
                title=extraction.title,
                reminder_phrase=text_without_bot,
                assignee=extraction.assignee,
                assignees=extraction.assignees,
            )

        incoming = draft_from_extraction(extraction, channel_id, user_id, text)
        incoming = sanitize(
            text,
            user_id,
            self.bot_id,
            incoming,
            # Only a fresh request defaults the assignee; a follow-up must not
            # overwrite one named earlier
            default_to_requester=self.default_to_requester and pending is None,
        )

        draft = incoming
        if pending is not None:
            draft = pending.draft.merge(incoming)
            if not draft.assignee and self.default_to_requester:
                draft = replace(draft, assignee=user_id, assignees=(user_id,))

        missing = compute_missing(draft)
        if missing:
            self.drafts.set(channel_id, user_id, PendingContext(draft=draft, missing=missing))
            self.json_logger.log(
                "draft_updated",
                chat_id=channel_id,
                user_id=user_id,
                missing=sorted(f.value for f in missing),
            )
            return SlotFillResult(
                reply=build_followup_question(draft, missing),
                missing=missing,
            )

        self.drafts.clear(channel_id, user_id)
        task = self.store.create(normalize_draft(draft, now))
        self.json_logger.log(
            "task_created",
            chat_id=channel_id,
            user_id=user_id,
            task_id=task.id,
            source="slot_filling",
        )
        return SlotFillResult(reply=build_confirmation_card(task), task=task)
