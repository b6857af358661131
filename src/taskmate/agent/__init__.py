"""Orchestrator, response protocol and prompt."""

from .orchestrator import Orchestrator, OrchestratorResult, ToolTrace
from .prompt import PromptContext, build_system_prompt
from .protocol import ParsedResponse, ParsedToolCall, extract_tool_calls

__all__ = [
    "Orchestrator",
    "OrchestratorResult",
    "ParsedResponse",
    "ParsedToolCall",
    "PromptContext",
    "ToolTrace",
    "build_system_prompt",
    "extract_tool_calls",
]
