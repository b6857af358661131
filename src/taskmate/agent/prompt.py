"""Prompt builder for the orchestrator."""

from dataclasses import dataclass

from ..tools.base import Tool

SYSTEM_PROMPT_BASE = """You are Taskmate, a task-tracking assistant for {organization}. You read messages from the team and decide what operational help they need. Keep responses concise, professional and execution-focused.

You coordinate work by invoking tools. Only trigger a tool when truly helpful. You may trigger several tools in one reply.

Available tools:
{tools_description}

Tool usage rules:
1. Tools can ONLY be triggered by outputting the exact token, e.g. [CreateTask] followed immediately by a JSON object using double quotes. Example: [CreateTask] {{"title": "Schedule weekly sync"}}
2. Each tool call must be on its own line. Arguments are always a flat JSON object.
3. Do not explain how tools work internally.
4. If you do not need a tool, respond with guidance or a clarifying question. Never invent tool names.
5. Write a short natural-language reply for the human first, followed by any tool calls.

Context for this conversation:
- Current ISO time: {current_time}
- Requester: {user_mention}
- Channel ID: {channel_id}

Communication style:
- Default to English unless the user prefers another language.
- Be decisive, concise and action-oriented.
- Ask targeted clarification questions when required information is missing.
- Tools will not run unless you output the bracketed token."""


@dataclass(frozen=True)
class PromptContext:
    user_mention: str
    channel_id: str
    current_time: str
    organization: str = "the team"


def format_tools(tools: list[Tool]) -> str:
    if not tools:
        return "- (no tools registered yet)"
    return "\n\n".join(
        f"- [{t.name}]\n  Purpose: {t.description}\n  JSON payload example: {t.example}"
        for t in tools
    )


def build_system_prompt(tools: list[Tool], context: PromptContext) -> str:
    """Build the system prompt listing tools and the situational context."""
    return SYSTEM_PROMPT_BASE.format(
        organization=context.organization,
        tools_description=format_tools(tools),
        current_time=context.current_time,
        user_mention=context.user_mention,
        channel_id=context.channel_id,
    )


def format_tool_result(tool_name: str, success: bool, output: str, error: str | None) -> str:
    """Format a tool result as a line the user can read."""
    if success:
        return f"{tool_name} succeeded: {output}"
    return f"⚠️ {tool_name} failed: {error}"
