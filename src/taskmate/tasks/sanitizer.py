"""Reconcile an LLM extraction with the literal utterance and who is asking."""

import re

from ..timeparse import looks_like_time, normalize_user_id, normalize_whitespace
from .models import Extraction, TaskDraft

_HANDLE = r"@([A-Za-z0-9_]{5,32})"

_REMIND_ME_TO = re.compile(r"remind\s+me\s+to\s+(.+)", re.IGNORECASE | re.DOTALL)
_REMIND_USER_TO = re.compile(rf"remind\s+{_HANDLE}\s+to\s+(.+)", re.IGNORECASE | re.DOTALL)
_REMIND_USER = re.compile(rf"remind\s+{_HANDLE}", re.IGNORECASE)
_SELF_REFERENCE = re.compile(r"\bremind\s+me\b|\bme\b", re.IGNORECASE)

MIN_TITLE_LENGTH = 3


def strip_bot_mention(text: str, bot_id: str | None) -> str:
    """Remove a leading mention of the bot itself."""
    if not bot_id:
        return text.strip()
    pattern = rf"^\s*@{re.escape(normalize_user_id(bot_id))}\b[\s,:]*"
    return re.sub(pattern, "", text, flags=re.IGNORECASE).strip()


def derive_title(text: str) -> str | None:
    """Build a title from "remind me to ..." / "remind @user to ..." phrasing."""
    match = _REMIND_ME_TO.search(text)
    if match:
        return normalize_whitespace(f"Remind me to {match.group(1)}")
    match = _REMIND_USER_TO.search(text)
    if match:
        return normalize_whitespace(f"Remind @{match.group(1)} to {match.group(2)}")
    return None


def has_self_reference(text: str) -> bool:
    return bool(_SELF_REFERENCE.search(text))


def sanitize(
    raw_text: str,
    requester_id: str,
    bot_id: str | None,
    draft: TaskDraft,
    *,
    default_to_requester: bool = True,
) -> TaskDraft:
    """Resolve title and assignee ambiguities in a draft.

    Args:
        raw_text: The literal message as received.
        requester_id: Who sent it.
        bot_id: The bot's own user id, stripped from the start of the text.
        draft: Draft built from the extraction.
        default_to_requester: Fill a still-missing assignee with the requester.

    Returns:
        A new draft; the input is not modified.
    """
    text = strip_bot_mention(raw_text, bot_id)
    title_source = draft.raw_text.strip() if draft.raw_text and draft.raw_text.strip() else text
    title_source = strip_bot_mention(title_source, bot_id)

    title = normalize_whitespace(draft.title or draft.task)
    if not title or len(title) < MIN_TITLE_LENGTH:
        title = derive_title(title_source) or title
    if title and looks_like_time(title):
        title = derive_title(title_source) or title

    requester = normalize_user_id(requester_id)
    extracted = normalize_user_id(draft.assignee)
    if extracted.lower() == "me":
        extracted = requester

    if has_self_reference(text):
        assignee = requester
    elif extracted:
        assignee = extracted
    else:
        match = _REMIND_USER.search(text)
        assignee = match.group(1) if match else ""
    if not assignee and default_to_requester:
        assignee = requester

    bot = normalize_user_id(bot_id) if bot_id else None
    assignees = tuple(
        user_id
        for user_id in (normalize_user_id(a) for a in draft.assignees)
        if user_id and user_id != bot
    )
    if not assignees and assignee:
        assignees = (assignee,)

    return TaskDraft(
        channel_id=draft.channel_id,
        created_by=draft.created_by,
        title=title or None,
        task=None,
        time=normalize_whitespace(draft.time) or None,
        reminder_phrase=normalize_whitespace(draft.reminder_phrase) or None,
        assignee=assignee or None,
        assignees=assignees,
        raw_text=text,
    )


def draft_from_extraction(
    extraction: Extraction,
    channel_id: str,
    created_by: str,
    raw_text: str,
) -> TaskDraft:
    """Lift an extraction into a draft for the given conversation."""
    return TaskDraft(
        channel_id=channel_id,
        created_by=created_by,
        title=extraction.title,
        time=extraction.time,
        reminder_phrase=extraction.reminder_phrase,
        assignee=extraction.assignee,
        assignees=extraction.assignees,
        raw_text=raw_text,
    )
