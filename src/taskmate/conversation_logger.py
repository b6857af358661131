"""Per-conversation transcript logs.

Each conversation gets one JSONL file per day with the user messages, raw
model responses, tool announcements and tool results.
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

MAX_TOOL_MESSAGE_CHARS = 2000

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class ConversationLogger:
    """Writes what was said and done in each conversation, for later review."""

    def __init__(self, log_dir: Path | str | None = None) -> None:
        """Initialize the conversation logger.

        Args:
            log_dir: Directory to store transcripts. Defaults to
                ~/.taskmate/conversations.
        """
        self.log_dir = Path(log_dir) if log_dir is not None else (
            Path.home() / ".taskmate" / "conversations"
        )
        self.log_dir.mkdir(parents=True, exist_ok=True)

    def _get_log_file(self, chat_id: str) -> Path:
        day = datetime.now().strftime("%Y-%m-%d")
        return self.log_dir / f"{day}_{_UNSAFE_FILENAME_CHARS.sub('_', chat_id)}.jsonl"

    def log(self, chat_id: str, event: str, **fields: Any) -> None:
        """Append one transcript line; None-valued fields are left out."""
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "chat_id": chat_id,
            "event": event,
            **{k: v for k, v in fields.items() if v is not None},
        }
        with open(self._get_log_file(chat_id), "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")

    def log_user_message(self, chat_id: str, content: str) -> None:
        self.log(chat_id, "user_message", role="user", content=content)

    def log_model_response(self, chat_id: str, content: str, tool_calls_count: int) -> None:
        """Raw model output, before tool tokens are stripped."""
        self.log(
            chat_id,
            "model_response",
            role="assistant",
            content=content,
            tool_calls_count=tool_calls_count,
        )

    def log_tool_announced(self, chat_id: str, tool_name: str, raw_arguments: str | None) -> None:
        self.log(chat_id, "tool_announced", tool_name=tool_name, raw_arguments=raw_arguments)

    def log_tool_result(
        self,
        chat_id: str,
        tool_name: str,
        success: bool,
        message: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        self.log(
            chat_id,
            "tool_result",
            tool_name=tool_name,
            success=success,
            message=message[:MAX_TOOL_MESSAGE_CHARS] if message else None,
            duration_ms=duration_ms,
        )

    def log_error(self, chat_id: str, error: str, context: str | None = None) -> None:
        self.log(chat_id, "error", error=error, context=context)


_conversation_logger: ConversationLogger | None = None


def get_conversation_logger(log_dir: Path | str | None = None) -> ConversationLogger:
    """Get or create the global conversation logger."""
    global _conversation_logger
    if _conversation_logger is None:
        _conversation_logger = ConversationLogger(log_dir=log_dir)
    return _conversation_logger


def reset_conversation_logger() -> None:
    """Drop the global conversation logger (used by tests)."""
    global _conversation_logger
    _conversation_logger = None
