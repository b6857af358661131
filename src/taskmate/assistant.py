"""Application core: routes inbound messages and clicks to the right component."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from .agent import Orchestrator
from .agent.prompt import format_tool_result
from .config import Settings
from .conversation.drafts import DraftStore
from .conversation.engine import SlotFillingEngine
from .conversation.history import ConversationHistory
from .conversation_logger import ConversationLogger, get_conversation_logger
from .errors import TaskmateError
from .gateway.actions import TaskActions
from .gateway.base import ActionClick, InboundMessage, MessagingGateway, OutgoingMessage
from .llm import create_chat
from .logging import get_logger
from .scheduler import ReminderIntroWriter, ReminderScheduler
from .tasks.extractor import TaskExtractor
from .tasks.sanitizer import strip_bot_mention
from .tasks.store import TaskStore
from .tools import ToolContext, ToolRegistry, register_task_tools

logger = logging.getLogger(__name__)

GENERIC_ERROR_REPLY = "❌ Something went wrong, please try again later."

_REMINDER_REQUEST = re.compile(r"\bremind\b|提醒", re.IGNORECASE)
_CANCEL = re.compile(r"^/?cancel\b", re.IGNORECASE)


def is_reminder_request(text: str) -> bool:
    return bool(_REMINDER_REQUEST.search(text))


def is_cancel_command(text: str) -> bool:
    return bool(_CANCEL.match(text.strip()))


class Assistant:
    """Per-request isolation boundary between the platform and the core.

    Messages from the same (channel, user) are processed one at a time.
    """

    def __init__(
        self,
        store: TaskStore,
        engine: SlotFillingEngine,
        orchestrator: Orchestrator,
        history: ConversationHistory,
        actions: TaskActions,
        gateway: MessagingGateway,
        bot_id: str | None = None,
        conversation_logger: ConversationLogger | None = None,
    ) -> None:
        self.store = store
        self.engine = engine
        self.orchestrator = orchestrator
        self.history = history
        self.actions = actions
        self.gateway = gateway
        self.bot_id = bot_id
        self.conv_logger = conversation_logger or get_conversation_logger()
        self.json_logger = get_logger()
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._lock_users: dict[tuple[str, str], int] = {}

    @property
    def registry(self) -> ToolRegistry:
        return self.orchestrator.registry

    def is_busy(self, channel_id: str, user_id: str) -> bool:
        lock = self._locks.get((channel_id, user_id))
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def _serialized(self, channel_id: str, user_id: str) -> AsyncIterator[None]:
        """Hold the per-(channel, user) lock; it is dropped once nobody waits on it."""
        key = (channel_id, user_id)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def handle_message(self, message: InboundMessage) -> OutgoingMessage | None:
        """Process one inbound message and send the replies.

        Returns the final reply that was sent, or None if nothing was sent.
        """
        async with self._serialized(message.channel_id, message.author_id):
            try:
                reply = await self._route(message)
            except TaskmateError as e:
                logger.warning(f"Request failed in {message.channel_id}: {e}")
                self.json_logger.log(
                    "request_failed",
                    chat_id=message.channel_id,
                    user_id=message.author_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                reply = f"❌ {e.user_message}"
            except Exception as e:
                logger.exception("Error processing message")
                self.json_logger.log(
                    "request_failed",
                    chat_id=message.channel_id,
                    user_id=message.author_id,
                    error=str(e),
                )
                self.conv_logger.log_error(message.channel_id, str(e), context="handle_message")
                reply = GENERIC_ERROR_REPLY

            if reply is None:
                return None
            await self._send(message.channel_id, reply)
            return reply

    async def _route(self, message: InboundMessage) -> OutgoingMessage | None:
        text = strip_bot_mention(message.text, self.bot_id)
        channel_id, user_id = message.channel_id, message.author_id
        if not text:
            return None

        self.conv_logger.log_user_message(message.channel_id, text)

        if is_cancel_command(text):
            if self.engine.cancel(channel_id, user_id):
                return "🚫 Okay, I dropped the task we were working on."
            return "There is nothing to cancel."

        if self.actions.awaiting_reason(channel_id, user_id):
            return self.actions.record_reason(channel_id, user_id, text)

        if self.engine.has_pending(channel_id, user_id) or is_reminder_request(text):
            result = await self.engine.handle(text, channel_id, user_id, now=message.timestamp)
            return result.reply

        return await self._orchestrate(message, text)

    async def _orchestrate(self, message: InboundMessage, text: str) -> str:
        key = message.conversation_key
        self.history.append(key, "user", text)

        context = ToolContext(
            channel_id=message.channel_id,
            user_id=message.author_id,
            raw_text=text,
            store=self.store,
            gateway=self.gateway,
        )
        result = await self.orchestrator.run(self.history.for_llm(key), context, now=message.timestamp)
        self.history.append(key, "assistant", result.raw_response)

        reply = result.final_reply
        failures = [
            format_tool_result(t.name, False, "", t.message)
            for t in result.tool_results
            if t.status == "error"
        ]
        if failures:
            reply = "\n".join([reply, *failures])
        return reply

    async def handle_action(self, click: ActionClick) -> str:
        """Apply a button click. Never raises."""
        async with self._serialized(click.channel_id, click.user_id):
            try:
                return self.actions.handle(click)
            except Exception as e:
                logger.exception(f"Action {click.action_id} failed")
                self.json_logger.log("action_failed", chat_id=click.channel_id, error=str(e))
                return GENERIC_ERROR_REPLY

    async def list_tasks(self, channel_id: str, user_id: str, scope: str = "pending") -> None:
        """Send the user's task list, the same way the ListTasks tool does."""
        context = ToolContext(
            channel_id=channel_id,
            user_id=user_id,
            raw_text="",
            store=self.store,
            gateway=self.gateway,
        )
        result = await self.registry.dispatch("ListTasks", {"scope": scope}, context)
        if not result.success:
            await self._send(channel_id, f"❌ {result.error}")

    async def _send(self, channel_id: str, message: OutgoingMessage) -> None:
        try:
            await self.gateway.send(channel_id, message)
        except TaskmateError as e:
            logger.warning(f"Failed to deliver reply to {channel_id}: {e}")


def build_assistant(
    settings: Settings,
    gateway: MessagingGateway,
    bot_id: str | None = None,
) -> tuple[Assistant, ReminderScheduler]:
    """Wire up the store, model client, tools and scheduler from settings."""
    store = TaskStore(settings.db_path)
    store.init_db()

    chat = create_chat(settings.groq_api_key, settings.groq_model)
    if chat is None:
        logger.warning("GROQ_API_KEY not set; task extraction and chat are disabled")

    registry = register_task_tools(ToolRegistry())
    conv = settings.conversation
    engine = SlotFillingEngine(
        TaskExtractor(chat),
        store,
        drafts=DraftStore(ttl_seconds=conv.draft_ttl),
        bot_id=bot_id,
        default_to_requester=conv.default_assignee_to_requester,
    )
    assistant = Assistant(
        store=store,
        engine=engine,
        orchestrator=Orchestrator(registry, chat, organization=settings.organization),
        history=ConversationHistory(limit=conv.history_limit),
        actions=TaskActions(store),
        gateway=gateway,
        bot_id=bot_id,
    )
    scheduler = ReminderScheduler(
        store,
        gateway,
        config=settings.reminders,
        intro_writer=ReminderIntroWriter(chat),
    )
    return assistant, scheduler


def describe(settings: Settings) -> dict[str, Any]:
    """Non-secret settings summary for the startup log."""
    return {
        "db_path": str(settings.db_path),
        "model": settings.groq_model if settings.groq_api_key else None,
        "webhook": bool(settings.webhook_url),
        "reminder_interval": settings.reminders.interval,
    }
