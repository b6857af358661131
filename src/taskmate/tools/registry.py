"""Tool registry for managing and dispatching tools."""

from __future__ import annotations

import logging
from typing import Any

from ..errors import TaskmateError
from .base import Tool, ToolContext, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registry for available tools, keyed by name."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any tool with the same name."""
        if tool.name in self._tools:
            logger.info(f"Replacing registered tool '{tool.name}'")
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        """Unregister a tool by name."""
        self._tools.pop(name, None)

    def get(self, name: str) -> Tool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list(self) -> list[Tool]:
        """All registered tools, in registration order."""
        return list(self._tools.values())

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    async def dispatch(
        self, tool_name: str, args: dict[str, Any], context: ToolContext
    ) -> ToolResult:
        """Dispatch a tool call by name. Never raises."""
        tool = self._tools.get(tool_name)
        if tool is None:
            return ToolResult(
                success=False,
                output="",
                error=f"Tool not registered: {tool_name}",
            )

        valid, error = tool.validate_args(args)
        if not valid:
            return ToolResult(success=False, output="", error=error)

        try:
            return await tool.execute(args, context)
        except TaskmateError as e:
            return ToolResult(success=False, output="", error=e.user_message)
        except Exception as e:
            logger.exception(f"Tool {tool_name} failed")
            return ToolResult(
                success=False,
                output="",
                error=f"Tool execution failed: {e}",
            )
