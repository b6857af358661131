"""Cards for task confirmations, reminders and task lists."""

from datetime import datetime

from ..tasks.models import Task
from ..timeparse import format_mention
from .base import Button, Card

ACTION_COMPLETE = "task_complete"
ACTION_NOT_COMPLETED = "task_not_completed"
ACTION_DELAY_15M = "task_delay_15m"
ACTION_DELAY_60M = "task_delay_60m"
ACTION_DELETE = "task_delete"


def format_time(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M %Z").strip()


def format_assignees(task: Task) -> str:
    people = task.assignees or (task.assignee,)
    return ", ".join(format_mention(p) for p in people)


def build_confirmation_card(task: Task) -> Card:
    """Card shown right after a task is created."""
    text = (
        "✅ Task created successfully!\n"
        f"• Title: {task.title}\n"
        f"• Assignee: {format_assignees(task)}\n"
        f"• Time: {format_time(task.due_at)}"
    )
    return Card(
        text=text,
        buttons=(Button("✅ Complete", ACTION_COMPLETE, task.id, style="primary"),),
    )


def build_reminder_card(task: Task, intro: str | None = None) -> Card:
    """Card sent when a task's deadline is approaching."""
    lines = []
    if intro:
        lines.append(intro)
    lines.extend(
        [
            "🔔 Task Reminder",
            f"• Title: {task.title}",
            f"• Assignees: {format_assignees(task)}",
            f"• Time: {format_time(task.due_at)}",
        ]
    )
    return Card(
        text="\n".join(lines),
        buttons=(
            Button("Completed ✅", ACTION_COMPLETE, task.id, style="primary"),
            Button("Not Completed ❌", ACTION_NOT_COMPLETED, task.id, style="danger"),
            Button("+15 min", ACTION_DELAY_15M, task.id),
            Button("+1 hour", ACTION_DELAY_60M, task.id),
        ),
    )


def build_task_summary_card(task: Task) -> Card:
    """One entry of a task list."""
    status = "✅" if task.completed else "⏰"
    label = " (Completed)" if task.completed else ""
    text = f"{task.title}{label}\n{status} {format_time(task.due_at)}\n👤 {format_assignees(task)}"

    buttons = []
    if not task.completed:
        buttons.append(Button("✅ Complete", ACTION_COMPLETE, task.id, style="primary"))
    buttons.append(Button("🗑️", ACTION_DELETE, task.id))
    return Card(text=text, buttons=tuple(buttons))


def build_task_list(tasks: list[Task], scope: str) -> list[Card | str]:
    """Header line followed by one card per task."""
    if not tasks:
        if scope == "completed":
            return ["📋 You have no completed tasks!"]
        if scope == "all":
            return ["📋 You have no tasks!"]
        return ["📋 You have no pending tasks!"]

    completed = sum(1 for t in tasks if t.completed)
    pending = len(tasks) - completed
    if scope == "completed":
        header = f"📋 Completed Tasks ({completed})"
    elif scope == "all":
        header = f"📋 All Tasks ({pending} pending, {completed} completed)"
    else:
        header = f"📋 Pending Tasks ({pending})"

    messages: list[Card | str] = [header]
    messages.extend(build_task_summary_card(t) for t in tasks)
    return messages
