"""Handlers for card button clicks."""

import logging
from datetime import timedelta

from ..errors import TaskmateError
from ..logging import get_logger
from ..tasks.store import TaskStore
from .base import ActionClick
from .cards import (
    ACTION_COMPLETE,
    ACTION_DELAY_15M,
    ACTION_DELAY_60M,
    ACTION_DELETE,
    ACTION_NOT_COMPLETED,
    format_time,
)

logger = logging.getLogger(__name__)

DELAYS = {
    ACTION_DELAY_15M: (timedelta(minutes=15), "15 minutes"),
    ACTION_DELAY_60M: (timedelta(hours=1), "1 hour"),
}


class TaskActions:
    """Applies button clicks to stored tasks.

    Every outcome, including unknown actions or tasks, is reported as a
    reply string; nothing is raised to the platform adapter.
    """

    def __init__(self, store: TaskStore) -> None:
        self.store = store
        self.json_logger = get_logger()
        # (channel_id, user_id) -> task id awaiting a not-completed reason
        self._awaiting_reason: dict[tuple[str, str], str] = {}

    def awaiting_reason(self, channel_id: str, user_id: str) -> bool:
        return (channel_id, user_id) in self._awaiting_reason

    def record_reason(self, channel_id: str, user_id: str, text: str) -> str:
        """Store ``text`` as the not-completed reason the user was asked for."""
        task_id = self._awaiting_reason.pop((channel_id, user_id), None)
        if task_id is None:
            return "There is no task waiting for a reason."

        reason = text.strip()
        if not reason:
            self._awaiting_reason[(channel_id, user_id)] = task_id
            return "Please tell me briefly why the task wasn't completed."

        try:
            self.store.update(task_id, {"not_completed_reason": reason})
        except TaskmateError as e:
            logger.warning(f"Failed to save not-completed reason for {task_id}: {e}")
            return f"❌ {e.user_message}"

        self.json_logger.log("reason_recorded", chat_id=channel_id, user_id=user_id, task_id=task_id)
        return "📝 Thanks, I've noted the reason."

    def handle(self, click: ActionClick) -> str:
        """Apply a click and return the confirmation to show the clicker."""
        self.json_logger.log(
            "action_click",
            chat_id=click.channel_id,
            user_id=click.user_id,
            task_id=click.value,
            action=click.action_id,
        )

        try:
            task = self.store.find_by_id(click.value)
            if task is None:
                return f"❌ Task not found (ID: {click.value})"

            if click.action_id == ACTION_COMPLETE:
                self.store.update(task.id, {"completed": True})
                return f"✅ Task marked as complete (ID: {task.id})"

            if click.action_id == ACTION_NOT_COMPLETED:
                self.store.update(task.id, {"completed": False})
                self._awaiting_reason[(click.channel_id, click.user_id)] = task.id
                return f"❌ Task “{task.title}” marked as not completed. What got in the way?"

            if click.action_id in DELAYS:
                delta, label = DELAYS[click.action_id]
                new_time = task.due_at + delta
                self.store.update(task.id, {"due_at": new_time})
                return f"⏱ Delayed by {label} (new time: {format_time(new_time)})"

            if click.action_id == ACTION_DELETE:
                self.store.delete(task.id)
                return f"🗑️ Task “{task.title}” deleted."

        except TaskmateError as e:
            logger.warning(f"Action {click.action_id} failed for task {click.value}: {e}")
            return "❌ Update failed, please try again later"

        return f"Unknown action: {click.action_id}"
