"""Task model, extraction, sanitation, normalization and storage."""

from .extractor import TaskExtractor
from .models import Extraction, NewTask, Task, TaskDraft
from .normalize import normalize_draft, resolve_due_time
from .sanitizer import sanitize
from .store import TaskStore

__all__ = [
    "Extraction",
    "NewTask",
    "Task",
    "TaskDraft",
    "TaskExtractor",
    "TaskStore",
    "normalize_draft",
    "resolve_due_time",
    "sanitize",
]
