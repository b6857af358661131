"""Bounded per-thread message history fed to the orchestrator."""

from dataclasses import dataclass
from typing import Any, Literal

MAX_MESSAGES_PER_THREAD = 20

Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class HistoryMessage:
    role: Role
    content: str


class ConversationHistory:
    """Most recent messages per thread; oldest are evicted first."""

    def __init__(self, limit: int = MAX_MESSAGES_PER_THREAD) -> None:
        if limit <= 0:
            raise ValueError("History limit must be positive")
        self.limit = limit
        self._threads: dict[str, list[HistoryMessage]] = {}

    def get(self, thread_id: str) -> list[HistoryMessage]:
        return list(self._threads.get(thread_id, []))

    def has(self, thread_id: str) -> bool:
        return thread_id in self._threads

    def append(self, thread_id: str, role: Role, content: str) -> None:
        history = self._threads.setdefault(thread_id, [])
        history.append(HistoryMessage(role=role, content=content))
        if len(history) > self.limit:
            del history[: len(history) - self.limit]

    def clear(self, thread_id: str) -> None:
        self._threads.pop(thread_id, None)

    def for_llm(self, thread_id: str) -> list[dict[str, Any]]:
        """Messages in chat-completion format."""
        return [{"role": m.role, "content": m.content} for m in self.get(thread_id)]
