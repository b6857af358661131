"""Structured task extraction from free text using the LLM."""

import json
import logging
from datetime import datetime, timezone

from ..errors import ExtractionFailure
from ..llm import GroqChat
from .models import Extraction

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """You are a strict task parser. Convert the user input into JSON with these fields:
- title: task title (string), without the time expression.
- time: ISO 8601 datetime (e.g. "2025-08-24T09:00:00Z"). Leave empty if not clear.
- reminder_time: the original relative description if given (e.g. "in 2 minutes"). Otherwise empty.
- assignee: primary responsible person as a mention (e.g. "@alexkim"). Use "me" if the user means themselves.
- assignees: array of ALL mentioned users (e.g. ["@alexkim", "@samlee"]).

The current time is {now}.
Only output valid JSON, nothing else.
Input: \"\"\"{text}\"\"\"
"""


class TaskExtractor:
    """Extracts task fields from an utterance with the language model."""

    def __init__(self, chat: GroqChat | None) -> None:
        """Initialize the extractor.

        Args:
            chat: The chat client, or None when no model is configured.
        """
        self.chat = chat

    async def extract(self, text: str, now: datetime | None = None) -> Extraction:
        """Extract task fields from text.

        Raises:
            ExtractionFailure: If no model is configured, the call fails, or
                the response is not a usable JSON object.
        """
        if self.chat is None:
            raise ExtractionFailure("No language model configured")
        if not text or not text.strip():
            raise ExtractionFailure("Nothing to extract from empty text")

        now = now or datetime.now(timezone.utc)
        prompt = EXTRACTION_PROMPT.format(now=now.isoformat(), text=text)
        content = await self.chat.complete(
            [{"role": "user", "content": prompt}], temperature=0.1
        )
        return self._parse_response(content)

    def _parse_response(self, content: str) -> Extraction:
        """Parse the raw LLM response into an Extraction."""
        json_str = content.strip()
        if json_str.startswith("```"):
            # Drop markdown code fences around the JSON
            lines = [line for line in json_str.split("\n") if not line.startswith("```")]
            json_str = "\n".join(lines)

        if not json_str:
            raise ExtractionFailure("Empty extraction response")

        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse extraction response: {e}")
            raise ExtractionFailure(f"Unparseable extraction response: {e}") from e

        if not isinstance(data, dict):
            raise ExtractionFailure("Extraction response is not a JSON object")

        return Extraction.from_dict(data)
