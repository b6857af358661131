"""Slot-filling drafts and per-thread conversation history."""

from .drafts import DraftStore, MissingField, PendingContext, compute_missing
from .engine import SlotFillingEngine, SlotFillResult
from .history import ConversationHistory, HistoryMessage

__all__ = [
    "ConversationHistory",
    "DraftStore",
    "HistoryMessage",
    "MissingField",
    "PendingContext",
    "SlotFillResult",
    "SlotFillingEngine",
    "compute_missing",
]
