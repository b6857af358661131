"""Task tools the orchestrator can invoke."""

from typing import Any

from ..gateway.cards import build_confirmation_card, build_task_list, format_assignees
from ..logging import get_logger
from ..tasks.models import TaskDraft
from ..tasks.normalize import normalize_draft
from ..timeparse import format_mention
from .base import Tool, ToolContext, ToolResult
from .registry import ToolRegistry

LIST_SCOPES = ("pending", "completed", "all")


class CreateTaskTool(Tool):
    """Create a task from a tool payload."""

    @property
    def name(self) -> str:
        return "CreateTask"

    @property
    def description(self) -> str:
        return (
            "Create a new task for the team. Include title, dueTime (ISO or relative) "
            "and the responsible users."
        )

    @property
    def example(self) -> str:
        return '{"title": "Prepare Q4 forecast", "dueTime": "2025-01-05T14:00:00-05:00", "assignee": "@alexkim"}'

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "title": {"type": "string", "description": "Task title"},
                "description": {"type": "string"},
                "dueTime": {"type": "string", "description": "ISO 8601 due time"},
                "reminder": {"type": "string", "description": "Relative time, e.g. 'in 30 minutes'"},
                "assignee": {"type": "string"},
                "assignees": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["title"],
        }

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        title = args.get("title", "").strip()
        if not title:
            return ToolResult(success=False, output="", error="Task title is required.")

        draft = TaskDraft(
            channel_id=context.channel_id,
            created_by=context.user_id,
            title=title,
            task=args.get("description"),
            time=args.get("dueTime"),
            reminder_phrase=args.get("reminder"),
            assignee=args.get("assignee") or context.user_id,
            assignees=tuple(args.get("assignees") or ()),
            raw_text=context.raw_text,
        )
        task = context.store.create(normalize_draft(draft))
        get_logger().log(
            "task_created",
            chat_id=context.channel_id,
            user_id=context.user_id,
            task_id=task.id,
            source="tool",
        )

        await context.send(build_confirmation_card(task))
        return ToolResult(
            success=True,
            output=f'Created task "{task.title}" for {format_assignees(task)}.',
            metadata={"task_id": task.id},
        )


class ListTasksTool(Tool):
    """Show the requester their tasks."""

    @property
    def name(self) -> str:
        return "ListTasks"

    @property
    def description(self) -> str:
        return (
            "Show the requester a summary of their tasks. Scope can be pending (default), "
            "completed, or all."
        )

    @property
    def example(self) -> str:
        return '{"scope": "pending"}'

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"scope": {"type": "string", "enum": list(LIST_SCOPES)}},
            "required": [],
        }

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        scope = args.get("scope") or "pending"
        if scope not in LIST_SCOPES:
            return ToolResult(
                success=False,
                output="",
                error=f"scope must be one of: {', '.join(LIST_SCOPES)}",
            )

        completed = None if scope == "all" else scope == "completed"
        tasks = context.store.find_many(user_id=context.user_id, completed=completed)
        for message in build_task_list(tasks, scope):
            await context.send(message)

        return ToolResult(success=True, output=f"Listed {len(tasks)} {scope} tasks.")


class DeleteTaskTool(Tool):
    """Delete a task permanently."""

    @property
    def name(self) -> str:
        return "DeleteTask"

    @property
    def description(self) -> str:
        return "Remove a task permanently when it is no longer needed. Requires the taskId."

    @property
    def example(self) -> str:
        return '{"taskId": "3f2a9c0d1e7b4f5a8c6d2e1f0a9b8c7d"}'

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"taskId": {"type": "string"}},
            "required": ["taskId"],
        }

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        task_id = args["taskId"].strip()
        if not task_id:
            return ToolResult(
                success=False, output="", error="A valid taskId is required to delete a task."
            )

        context.store.delete(task_id)
        await context.send(f"🗑️ Task {task_id} deleted.")
        return ToolResult(success=True, output=f"Deleted task {task_id}.")


class UpdateTaskStatusTool(Tool):
    """Mark a task completed or pending."""

    @property
    def name(self) -> str:
        return "UpdateTaskStatus"

    @property
    def description(self) -> str:
        return (
            "Mark a task as completed or pending. Provide taskId and completed flag, "
            "optional note explaining why it isn't done."
        )

    @property
    def example(self) -> str:
        return '{"taskId": "3f2a9c0d1e7b4f5a8c6d2e1f0a9b8c7d", "completed": true}'

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "taskId": {"type": "string"},
                "completed": {"type": "boolean"},
                "note": {"type": "string"},
            },
            "required": ["taskId", "completed"],
        }

    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        task_id = args["taskId"].strip()
        completed = args["completed"]
        note = (args.get("note") or "").strip() or None
        if not task_id:
            return ToolResult(success=False, output="", error="taskId is required.")

        task = context.store.update(
            task_id,
            {
                "completed": completed,
                "not_completed_reason": note if not completed else None,
            },
        )

        status = "completed" if completed else "marked as pending"
        message = f"✅ Task {task.id} {status}."
        if note:
            message += f"\n📝 Note: {note}"
        await context.send(message)
        return ToolResult(
            success=True,
            output=f"Task {task.id} {status} by {format_mention(context.user_id)}.",
        )


def register_task_tools(registry: ToolRegistry) -> ToolRegistry:
    """Register the core task tools."""
    registry.register(CreateTaskTool())
    registry.register(ListTasksTool())
    registry.register(DeleteTaskTool())
    registry.register(UpdateTaskStatusTool())
    return registry
