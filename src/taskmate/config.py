"""Settings loaded from environment variables."""

import os
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path

from .llm import DEFAULT_MODEL
from .scheduler.reminders import ReminderConfig

DEFAULT_DB_PATH = Path.home() / ".taskmate" / "tasks.db"
DEFAULT_PORT = 8443


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class ConversationConfig:
    """Slot-filling and history options."""

    history_limit: int = 20
    draft_ttl: float | None = None  # seconds; None keeps drafts until finished
    default_assignee_to_requester: bool = True

    @classmethod
    def from_env(cls) -> "ConversationConfig":
        ttl = os.getenv("DRAFT_TTL")
        return cls(
            history_limit=int(_env_float("HISTORY_LIMIT", 20)),
            draft_ttl=float(ttl) if ttl and ttl.strip() else None,
            default_assignee_to_requester=_env_bool("DEFAULT_ASSIGNEE_TO_REQUESTER", True),
        )


def reminder_config_from_env() -> ReminderConfig:
    """Reminder sweep options from REMINDER_* variables."""
    return ReminderConfig(
        interval=_env_float("REMINDER_INTERVAL", 60),
        lookahead=timedelta(days=_env_float("REMINDER_LOOKAHEAD_DAYS", 7)),
        tolerance=timedelta(seconds=_env_float("REMINDER_TOLERANCE", 60)),
        catch_up=timedelta(seconds=_env_float("REMINDER_CATCH_UP", 600)),
    )


@dataclass
class Settings:
    """Everything the application needs to start."""

    telegram_token: str | None = None
    groq_api_key: str | None = None
    groq_model: str = DEFAULT_MODEL
    port: int = DEFAULT_PORT
    webhook_url: str | None = None
    webhook_secret: str | None = None
    db_path: Path = DEFAULT_DB_PATH
    log_dir: Path | None = None
    organization: str = "the team"
    reminders: ReminderConfig = field(default_factory=ReminderConfig)
    conversation: ConversationConfig = field(default_factory=ConversationConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from the environment (call load_dotenv first)."""
        db_path = os.getenv("TASKMATE_DB_PATH")
        log_dir = os.getenv("TASKMATE_LOG_DIR")
        return cls(
            telegram_token=os.getenv("TELEGRAM_TOKEN") or None,
            groq_api_key=os.getenv("GROQ_API_KEY") or None,
            groq_model=os.getenv("GROQ_MODEL", DEFAULT_MODEL),
            port=int(_env_float("PORT", DEFAULT_PORT)),
            webhook_url=os.getenv("WEBHOOK_URL") or None,
            webhook_secret=os.getenv("WEBHOOK_SECRET") or None,
            db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
            log_dir=Path(log_dir).expanduser() if log_dir else None,
            organization=os.getenv("TASKMATE_ORGANIZATION", "the team"),
            reminders=reminder_config_from_env(),
            conversation=ConversationConfig.from_env(),
        )
