"""Base tool interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..gateway.base import OutgoingMessage

if TYPE_CHECKING:
    from ..gateway.base import MessagingGateway
    from ..tasks.store import TaskStore


@dataclass
class ToolResult:
    """Result from tool execution."""

    success: bool
    output: str
    error: str | None = None
    metadata: dict[str, Any] | None = None


@dataclass
class ToolContext:
    """Who triggered a tool and where its side effects go."""

    channel_id: str
    user_id: str
    raw_text: str
    store: "TaskStore"
    gateway: "MessagingGateway"

    async def send(self, message: OutgoingMessage) -> None:
        """Post a message to the channel the request came from."""
        await self.gateway.send(self.channel_id, message)


class Tool(ABC):
    """Base interface for all tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name, used as the ``[Name]`` token."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for the LLM."""
        ...

    @property
    @abstractmethod
    def example(self) -> str:
        """Canonical example payload, a flat JSON object as text."""
        ...

    @property
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for tool parameters."""
        return {"type": "object", "properties": {}, "required": []}

    @abstractmethod
    async def execute(self, args: dict[str, Any], context: ToolContext) -> ToolResult:
        """Execute the tool with parsed arguments."""
        ...

    def validate_args(self, args: dict[str, Any]) -> tuple[bool, str | None]:
        """Validate arguments against schema. Returns (valid, error_message)."""
        required = self.parameters.get("required", [])
        properties = self.parameters.get("properties", {})

        for field in required:
            if field not in args:
                return False, f"Missing required argument: {field}"

        # Basic type checks only
        for key, value in args.items():
            if key not in properties:
                continue
            expected_type = properties[key].get("type")
            if expected_type == "string" and not isinstance(value, str):
                return False, f"Argument '{key}' must be a string"
            if expected_type == "integer" and not isinstance(value, int):
                return False, f"Argument '{key}' must be an integer"
            if expected_type == "boolean" and not isinstance(value, bool):
                return False, f"Argument '{key}' must be a boolean"
            if expected_type == "array" and not isinstance(value, list):
                return False, f"Argument '{key}' must be an array"

        return True, None
