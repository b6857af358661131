"""Short AI-written lead-in for reminder messages."""

import logging

from ..errors import ExtractionFailure
from ..gateway.cards import format_time
from ..llm import GroqChat
from ..tasks.models import Task

logger = logging.getLogger(__name__)

MAX_INTRO_LENGTH = 400

INTRO_SYSTEM_PROMPT = """You are a chat assistant. Write a concise, empathetic, 1-2 sentence message nudging someone about a task that is due soon and offering help.

Rules:
- Be friendly, supportive and non-accusatory.
- Ask for a brief update and whether anything is blocking them.
- Keep the message under 240 characters.
- Mention the task title and due time naturally when both look valid; otherwise write a generic nudge.
- Never mention templates, missing fields or errors.

Return ONLY the message text, without quotes, code fences or commentary."""


def fallback_intro(task: Task) -> str:
    return (
        f"Heads up on “{task.title}” due {format_time(task.due_at)}. "
        "Anything blocking progress? You can mark it complete or snooze it below."
    )


class ReminderIntroWriter:
    """Writes the reminder lead-in, falling back to a template without a model."""

    def __init__(self, chat: GroqChat | None = None) -> None:
        self.chat = chat

    async def write(self, task: Task) -> str:
        if self.chat is None:
            return fallback_intro(task)

        try:
            text = await self.chat.complete(
                [
                    {"role": "system", "content": INTRO_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": (
                            f"Task title: {task.title}\n"
                            f"Due time: {format_time(task.due_at)}\n"
                            "Write the message."
                        ),
                    },
                ]
            )
        except ExtractionFailure as e:
            logger.warning(f"Reminder intro generation failed, using fallback: {e}")
            return fallback_intro(task)

        text = text.strip()
        if not text:
            return fallback_intro(task)
        return text[:MAX_INTRO_LENGTH]
