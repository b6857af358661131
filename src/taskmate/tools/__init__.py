"""Tool registry and task tools."""

from .base import Tool, ToolContext, ToolResult
from .registry import ToolRegistry
from .tasks import (
    CreateTaskTool,
    DeleteTaskTool,
    ListTasksTool,
    UpdateTaskStatusTool,
    register_task_tools,
)

__all__ = [
    "CreateTaskTool",
    "DeleteTaskTool",
    "ListTasksTool",
    "Tool",
    "ToolContext",
    "ToolResult",
    "ToolRegistry",
    "UpdateTaskStatusTool",
    "register_task_tools",
]
