"""Structured JSONL event log.

One JSON object per line in ``events.jsonl``. The file is rotated by size and
only the newest ``max_backups`` rotated files are kept.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

DEFAULT_LOG_DIR = Path.home() / ".taskmate" / "logs"


@dataclass
class LogEntry:
    """A single event record."""

    timestamp: str
    event: str
    chat_id: str | None = None
    user_id: str | None = None
    task_id: str | None = None
    tool_name: str | None = None
    duration_ms: float | None = None
    error: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, event: str, **fields: Any) -> "LogEntry":
        """Stamp an event with the current UTC time."""
        return cls(timestamp=datetime.now(timezone.utc).isoformat(), event=event, **fields)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, excluding None values and empty extras."""
        return {k: v for k, v in asdict(self).items() if v is not None and v != {}}


class JSONLLogger:
    """Appends events to a size-rotated JSONL file."""

    def __init__(
        self,
        log_dir: str | Path | None = None,
        filename: str = "events.jsonl",
        max_size_mb: float = 10.0,
        max_backups: int = 5,
    ) -> None:
        self.log_dir = Path(log_dir) if log_dir is not None else DEFAULT_LOG_DIR
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.filename = filename
        self.max_size_bytes = int(max_size_mb * 1024 * 1024)
        self.max_backups = max_backups
        self._rotations = 0

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.filename

    def backups(self) -> list[Path]:
        """Rotated files, oldest first."""
        stem = Path(self.filename).stem
        return sorted(self.log_dir.glob(f"{stem}_*.jsonl"))

    def _rotate_if_needed(self) -> None:
        path = self.log_path
        if not path.exists() or path.stat().st_size < self.max_size_bytes:
            return

        self._rotations += 1
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        path.rename(self.log_dir / f"{path.stem}_{stamp}_{self._rotations:04d}.jsonl")

        for old in self.backups()[: -self.max_backups or None]:
            old.unlink(missing_ok=True)

    def write(self, entry: LogEntry) -> None:
        self._rotate_if_needed()
        line = json.dumps(entry.to_dict(), ensure_ascii=False, default=str)
        with open(self.log_path, "a", encoding="utf-8") as f:
            f.write(line + "\n")

    def log(
        self,
        event: str,
        *,
        chat_id: str | None = None,
        user_id: str | None = None,
        task_id: str | None = None,
        tool_name: str | None = None,
        duration_ms: float | None = None,
        error: str | None = None,
        **extra: Any,
    ) -> None:
        """Record an event; unknown keyword fields go under ``extra``."""
        self.write(
            LogEntry.create(
                event,
                chat_id=chat_id,
                user_id=user_id,
                task_id=task_id,
                tool_name=tool_name,
                duration_ms=duration_ms,
                error=error,
                extra=extra,
            )
        )

    def log_tool_result(
        self,
        tool_name: str,
        success: bool,
        *,
        chat_id: str | None = None,
        duration_ms: float | None = None,
        error: str | None = None,
    ) -> None:
        self.log(
            "tool_result",
            chat_id=chat_id,
            tool_name=tool_name,
            duration_ms=duration_ms,
            error=None if success else error,
            success=success,
        )

    def log_reminder(
        self,
        task_id: str,
        sent: bool,
        *,
        chat_id: str | None = None,
        error: str | None = None,
    ) -> None:
        """Record one reminder delivery attempt."""
        self.log(
            "reminder_sent" if sent else "reminder_failed",
            chat_id=chat_id,
            task_id=task_id,
            error=error,
        )


_logger: JSONLLogger | None = None


def get_logger() -> JSONLLogger:
    """Process-wide event logger, created on first use."""
    global _logger
    if _logger is None:
        _logger = JSONLLogger()
    return _logger


def configure_logger(log_dir: str | Path | None = None, max_size_mb: float = 10.0) -> JSONLLogger:
    """Replace the process-wide event logger."""
    global _logger
    _logger = JSONLLogger(log_dir=log_dir, max_size_mb=max_size_mb)
    return _logger
