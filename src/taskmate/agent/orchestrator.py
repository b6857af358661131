"""Orchestrator: one model turn, then the tool calls it asked for."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from ..conversation_logger import ConversationLogger, get_conversation_logger
from ..errors import ExtractionFailure
from ..llm import GroqChat
from ..logging import get_logger
from ..timeparse import format_mention
from ..tools import ToolContext, ToolRegistry
from .prompt import PromptContext, build_system_prompt
from .protocol import extract_tool_calls

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Noted."


@dataclass(frozen=True)
class ToolTrace:
    """What happened to one tool call."""

    name: str
    status: Literal["success", "error"]
    message: str | None = None


@dataclass
class OrchestratorResult:
    """Result of one orchestrator run."""

    final_reply: str
    raw_response: str
    tool_results: list[ToolTrace] = field(default_factory=list)


class Orchestrator:
    """Builds the prompt, asks the model, runs tool calls in textual order."""

    def __init__(
        self,
        registry: ToolRegistry,
        chat: GroqChat | None,
        organization: str = "the team",
        conversation_logger: ConversationLogger | None = None,
    ) -> None:
        self.registry = registry
        self.chat = chat
        self.organization = organization
        self.conv_logger = conversation_logger or get_conversation_logger()
        self.json_logger = get_logger()

    async def run(
        self,
        history: list[dict[str, Any]],
        context: ToolContext,
        now: datetime | None = None,
    ) -> OrchestratorResult:
        """Run one turn over the bounded history.

        Raises:
            ExtractionFailure: If no model is configured or the call fails.
        """
        if self.chat is None:
            raise ExtractionFailure("No language model configured")

        now = now or datetime.now(timezone.utc)
        system_prompt = build_system_prompt(
            self.registry.list(),
            PromptContext(
                user_mention=format_mention(context.user_id),
                channel_id=context.channel_id,
                current_time=now.isoformat(),
                organization=self.organization,
            ),
        )
        messages = [{"role": "system", "content": system_prompt}, *history]

        response = await self.chat.complete(messages)
        parsed = extract_tool_calls(response)
        self.conv_logger.log_model_response(context.channel_id, response, len(parsed.calls))

        traces: list[ToolTrace] = []
        # Sequential on purpose: calls may touch the same task
        for call in parsed.calls:
            await self._announce(call.name, call.raw_arguments, context)
            trace = await self._execute(call.name, call.raw_arguments, context)
            traces.append(trace)
            self.conv_logger.log_tool_result(
                context.channel_id, trace.name, trace.status == "success", trace.message
            )

        return OrchestratorResult(
            final_reply=parsed.cleaned_text or FALLBACK_REPLY,
            raw_response=response,
            tool_results=traces,
        )

    async def _announce(
        self, name: str, raw_arguments: str | None, context: ToolContext
    ) -> None:
        """Tell the channel a tool is about to run."""
        logger.info(f"Model triggered tool [{name}] with payload: {raw_arguments or '{}'}")
        self.conv_logger.log_tool_announced(context.channel_id, name, raw_arguments)
        try:
            await context.send(f"🤖 Triggered tool [{name}]")
        except Exception as e:
            logger.warning(f"Failed to announce tool {name}: {e}")

    async def _execute(
        self, name: str, raw_arguments: str | None, context: ToolContext
    ) -> ToolTrace:
        if self.registry.get(name) is None:
            return ToolTrace(name=name, status="error", message=f"Tool not registered: {name}")

        args: Any = {}
        if raw_arguments:
            try:
                args = json.loads(raw_arguments)
            except json.JSONDecodeError as e:
                return ToolTrace(
                    name=name, status="error", message=f"Failed to parse JSON payload: {e}"
                )
        if not isinstance(args, dict):
            return ToolTrace(name=name, status="error", message="Payload must be a JSON object")

        self.json_logger.log("tool_call", chat_id=context.channel_id, tool_name=name, tool_args=args)
        start_time = time.time()
        result = await self.registry.dispatch(name, args, context)
        duration_ms = (time.time() - start_time) * 1000
        self.json_logger.log_tool_result(
            name,
            result.success,
            chat_id=context.channel_id,
            duration_ms=duration_ms,
            error=result.error,
        )

        if result.success:
            return ToolTrace(name=name, status="success", message=result.output or None)
        return ToolTrace(name=name, status="error", message=result.error)
