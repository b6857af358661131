"""Tests for the orchestrator prompt."""

from taskmate.agent.prompt import (
    PromptContext,
    build_system_prompt,
    format_tool_result,
    format_tools,
)
from taskmate.tools import ToolRegistry, register_task_tools


def context() -> PromptContext:
    return PromptContext(
        user_mention="@samlee",
        channel_id="-100123",
        current_time="2025-10-20T09:00:00+00:00",
        organization="Acme",
    )


def test_prompt_lists_every_tool():
    registry = register_task_tools(ToolRegistry())
    prompt = build_system_prompt(registry.list(), context())

    for name in ("CreateTask", "ListTasks", "DeleteTask", "UpdateTaskStatus"):
        assert f"- [{name}]" in prompt
    assert 'JSON payload example: {"scope": "pending"}' in prompt


def test_prompt_includes_context():
    prompt = build_system_prompt([], context())
    assert "Acme" in prompt
    assert "Requester: @samlee" in prompt
    assert "Channel ID: -100123" in prompt
    assert "Current ISO time: 2025-10-20T09:00:00+00:00" in prompt
    assert '[CreateTask] {"title": "Schedule weekly sync"}' in prompt


def test_format_tools_empty():
    assert format_tools([]) == "- (no tools registered yet)"


def test_format_tool_result():
    assert format_tool_result("ListTasks", True, "Listed 2 pending tasks.", None) == (
        "ListTasks succeeded: Listed 2 pending tasks."
    )
    assert format_tool_result("DeleteTask", False, "", "Task x not found.") == (
        "⚠️ DeleteTask failed: Task x not found."
    )
