"""Tests for the application core."""

import asyncio
import json
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from taskmate.agent import Orchestrator
from taskmate.assistant import (
    GENERIC_ERROR_REPLY,
    Assistant,
    build_assistant,
    is_cancel_command,
    is_reminder_request,
)
from taskmate.config import ConversationConfig, Settings
from taskmate.conversation.engine import SlotFillingEngine
from taskmate.conversation.history import ConversationHistory
from taskmate.gateway.actions import TaskActions
from taskmate.gateway.base import ActionClick, Card, InboundMessage
from taskmate.gateway.cards import ACTION_COMPLETE, ACTION_NOT_COMPLETED
from taskmate.llm import GroqChat
from taskmate.scheduler import ReminderScheduler
from taskmate.tasks.extractor import TaskExtractor
from taskmate.tasks.store import TaskStore
from taskmate.tools import ToolRegistry, register_task_tools

USER = "samlee"


@pytest.fixture
def assistant(store: TaskStore, chat: GroqChat, gateway) -> Assistant:
    registry = register_task_tools(ToolRegistry())
    return Assistant(
        store=store,
        engine=SlotFillingEngine(TaskExtractor(chat), store, bot_id="taskmate_bot"),
        orchestrator=Orchestrator(registry, chat),
        history=ConversationHistory(),
        actions=TaskActions(store),
        gateway=gateway,
        bot_id="taskmate_bot",
    )


def message(text: str, now: datetime | None = None, user: str = USER, **kwargs) -> InboundMessage:
    if now is not None:
        kwargs["timestamp"] = now
    return InboundMessage(text=text, author_id=user, channel_id="C1", **kwargs)


def extraction(**fields) -> str:
    return json.dumps(fields)


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_remind_me_creates_task_with_card(
        self, assistant: Assistant, store: TaskStore, gateway, respond, now: datetime
    ):
        respond(extraction(title="ship the report", reminder_time="in 30 minutes", assignee=""))

        reply = await assistant.handle_message(
            message("remind me to ship the report in 30 minutes", now)
        )

        tasks = store.find_many(user_id=USER)
        assert len(tasks) == 1
        task = tasks[0]
        assert task.title == "ship the report"
        assert task.assignee == USER
        assert abs(task.due_at - (now + timedelta(minutes=30))) < timedelta(seconds=1)

        assert isinstance(reply, Card)
        assert gateway.sent == [("C1", reply)]
        button = reply.buttons[0]
        assert (button.action_id, button.value) == (ACTION_COMPLETE, task.id)

    @pytest.mark.asyncio
    async def test_follow_up_routes_to_draft(
        self, assistant: Assistant, store: TaskStore, gateway, respond, now: datetime
    ):
        respond(extraction(title="prepare slides"), "{}")

        await assistant.handle_message(message("remind me to prepare slides", now))
        assert gateway.texts()[-1].startswith("When should I schedule")

        await assistant.handle_message(message("in 2 hours", now))
        assert store.find_many(user_id=USER)[0].due_at == now + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_bot_mention_stripped(
        self, assistant: Assistant, respond, now: datetime
    ):
        respond("Hi there!")
        await assistant.handle_message(message("@taskmate_bot how are you?", now))
        assert assistant.history.get("C1")[0].content == "how are you?"


class TestOrchestratorRoute:
    @pytest.mark.asyncio
    async def test_tool_call_flow(self, assistant: Assistant, gateway, respond, now: datetime):
        respond('Here are your tasks.\n[ListTasks] {"scope": "pending"}')

        reply = await assistant.handle_message(message("what's on my plate?", now))

        assert reply == "Here are your tasks."
        assert gateway.texts() == [
            "🤖 Triggered tool [ListTasks]",
            "📋 You have no pending tasks!",
            "Here are your tasks.",
        ]
        roles = [m.role for m in assistant.history.get("C1")]
        assert roles == ["user", "assistant"]
        assert "[ListTasks]" in assistant.history.get("C1")[1].content

    @pytest.mark.asyncio
    async def test_failed_tool_echoed(self, assistant: Assistant, respond, now: datetime):
        respond('[DeleteTask] {"taskId": "  "}')

        reply = await assistant.handle_message(message("delete that task", now))

        assert reply == "Noted.\n⚠️ DeleteTask failed: A valid taskId is required to delete a task."

    @pytest.mark.asyncio
    async def test_history_is_per_thread(self, assistant: Assistant, respond, now: datetime):
        respond("one", "two")
        await assistant.handle_message(message("hello", now, thread_id="7"))
        await assistant.handle_message(message("hello", now))
        assert len(assistant.history.get("C1:7")) == 2
        assert len(assistant.history.get("C1")) == 2


class TestErrors:
    @pytest.mark.asyncio
    async def test_extraction_failure_reply(self, assistant: Assistant, gateway, respond):
        respond("no json here")
        reply = await assistant.handle_message(message("remind me about the thing"))
        assert reply == "❌ I couldn't understand that, please try rephrasing."
        assert gateway.texts() == [reply]

    @pytest.mark.asyncio
    async def test_unexpected_error_is_isolated(self, assistant: Assistant, gateway):
        assistant.orchestrator.run = AsyncMock(side_effect=RuntimeError("kaboom"))
        reply = await assistant.handle_message(message("hello"))
        assert reply == GENERIC_ERROR_REPLY
        assert gateway.texts() == [GENERIC_ERROR_REPLY]

    @pytest.mark.asyncio
    async def test_delivery_failure_does_not_raise(
        self, store: TaskStore, chat: GroqChat, respond, failing_gateway
    ):
        assistant = Assistant(
            store=store,
            engine=SlotFillingEngine(TaskExtractor(chat), store),
            orchestrator=Orchestrator(ToolRegistry(), chat),
            history=ConversationHistory(),
            actions=TaskActions(store),
            gateway=failing_gateway,
        )
        respond("hello")
        assert await assistant.handle_message(message("hi")) == "hello"

    @pytest.mark.asyncio
    async def test_blank_message_ignored(self, assistant: Assistant, gateway):
        assert await assistant.handle_message(message("@taskmate_bot   ")) is None
        assert gateway.sent == []


class TestCancelAndReasons:
    @pytest.mark.asyncio
    async def test_cancel_open_draft(self, assistant: Assistant, respond, now: datetime):
        respond(extraction(title="prepare slides"))
        await assistant.handle_message(message("remind me to prepare slides", now))

        reply = await assistant.handle_message(message("/cancel"))

        assert reply.startswith("🚫")
        assert not assistant.engine.has_pending("C1", USER)

    @pytest.mark.asyncio
    async def test_cancel_without_draft(self, assistant: Assistant):
        assert await assistant.handle_message(message("cancel")) == "There is nothing to cancel."

    @pytest.mark.asyncio
    async def test_reason_after_not_completed_click(
        self, assistant: Assistant, store: TaskStore, respond, mock_client, now: datetime
    ):
        respond(extraction(title="ship the report", reminder_time="in 30 minutes"))
        await assistant.handle_message(message("remind me to ship the report in 30 minutes", now))
        task = store.find_many(user_id=USER)[0]

        mock_client.chat.completions.create = AsyncMock()
        reply = await assistant.handle_action(
            ActionClick(ACTION_NOT_COMPLETED, task.id, user_id=USER, channel_id="C1")
        )
        assert "What got in the way?" in reply

        await assistant.handle_message(message("waiting on finance", now))

        assert store.find_by_id(task.id).not_completed_reason == "waiting on finance"
        mock_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_action_on_missing_task(self, assistant: Assistant):
        reply = await assistant.handle_action(
            ActionClick("task_explode", "x", user_id=USER, channel_id="C1")
        )
        assert reply == "❌ Task not found (ID: x)"


class TestSerialization:
    @pytest.mark.asyncio
    async def test_same_user_processed_one_at_a_time(self, assistant: Assistant, mock_client):
        active = 0
        peak = 0

        async def slow_completion(**kwargs):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            response = Mock()
            response.choices = [Mock()]
            response.choices[0].message.content = "ok"
            return response

        mock_client.chat.completions.create = AsyncMock(side_effect=slow_completion)

        await asyncio.gather(
            assistant.handle_message(message("first")),
            assistant.handle_message(message("second")),
        )
        assert peak == 1

        peak = 0
        await asyncio.gather(
            assistant.handle_message(message("first", user="alexkim")),
            assistant.handle_message(message("second", user="jordan_p")),
        )
        assert peak == 2

    @pytest.mark.asyncio
    async def test_locks_released_after_handling(self, assistant: Assistant, respond):
        respond("ok", "ok", "ok")

        await asyncio.gather(
            assistant.handle_message(message("first")),
            assistant.handle_message(message("second")),
            assistant.handle_message(message("hello", user="alexkim")),
        )
        await assistant.handle_action(
            ActionClick("task_explode", "x", user_id=USER, channel_id="C1")
        )

        assert assistant._locks == {}
        assert assistant._lock_users == {}
        assert not assistant.is_busy("C1", USER)

    @pytest.mark.asyncio
    async def test_lock_kept_while_someone_waits(self, assistant: Assistant):
        async with assistant._serialized("C1", USER):
            waiter = asyncio.create_task(assistant.handle_message(message("   ")))
            await asyncio.sleep(0)
            assert assistant.is_busy("C1", USER)
            assert assistant._lock_users[("C1", USER)] == 2

        await waiter
        assert assistant._locks == {}


class TestListTasks:
    @pytest.mark.asyncio
    async def test_invalid_scope(self, assistant: Assistant, gateway):
        await assistant.list_tasks("C1", USER, "someday")
        assert gateway.texts()[0].startswith("❌ scope must be one of")


class TestRoutingHelpers:
    @pytest.mark.parametrize(
        "text", ["remind me to stretch", "Remind @alexkim to review", "10分钟后提醒我开会"]
    )
    def test_reminder_requests(self, text: str):
        assert is_reminder_request(text)

    @pytest.mark.parametrize("text", ["list my tasks", "reminders are great"])
    def test_not_reminder_requests(self, text: str):
        assert not is_reminder_request(text)

    def test_cancel_command(self):
        assert is_cancel_command("cancel")
        assert is_cancel_command(" /cancel ")
        assert not is_cancel_command("please don't cancel the meeting")


class TestBuildAssistant:
    def test_without_model_key(self, tmp_path: Path, gateway):
        settings = Settings(db_path=tmp_path / "tasks.db")
        assistant, scheduler = build_assistant(settings, gateway)

        assert assistant.orchestrator.chat is None
        assert assistant.registry.list_tools() == [
            "CreateTask",
            "ListTasks",
            "DeleteTask",
            "UpdateTaskStatus",
        ]
        assert isinstance(scheduler, ReminderScheduler)
        assert scheduler.intro_writer.chat is None
        assistant.store.close()

    def test_with_model_key(self, tmp_path: Path, gateway):
        settings = Settings(
            db_path=tmp_path / "tasks.db",
            groq_api_key="test-key",
            conversation=ConversationConfig(history_limit=5, draft_ttl=300),
        )
        assistant, _ = build_assistant(settings, gateway, bot_id="taskmate_bot")

        assert assistant.orchestrator.chat is not None
        assert assistant.history.limit == 5
        assert assistant.engine.drafts.ttl_seconds == 300
        assert assistant.engine.bot_id == "taskmate_bot"
        assistant.store.close()
