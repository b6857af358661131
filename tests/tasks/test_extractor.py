"""Tests for TaskExtractor."""

from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from taskmate.errors import ExtractionFailure
from taskmate.llm import GroqChat
from taskmate.tasks.extractor import TaskExtractor
from taskmate.tasks.models import Extraction


@pytest.fixture
def extractor(chat: GroqChat) -> TaskExtractor:
    return TaskExtractor(chat)


class TestTaskExtractor:
    @pytest.mark.asyncio
    async def test_valid_extraction(self, extractor: TaskExtractor, respond, now: datetime):
        create = respond(
            '{"title": "ship the report", "time": "", "reminder_time": "in 30 minutes", '
            '"assignee": "me", "assignees": []}'
        )
        result = await extractor.extract("remind me to ship the report in 30 minutes", now)

        assert result == Extraction(
            title="ship the report", reminder_phrase="in 30 minutes", assignee="me"
        )
        prompt = create.call_args.kwargs["messages"][0]["content"]
        assert now.isoformat() in prompt
        assert "ship the report in 30 minutes" in prompt

    @pytest.mark.asyncio
    async def test_code_fences_stripped(self, extractor: TaskExtractor, respond):
        respond('```json\n{"title": "Deploy", "assignees": ["@alexkim", "@samlee"]}\n```')
        result = await extractor.extract("deploy with @alexkim and @samlee")
        assert result.title == "Deploy"
        assert result.assignees == ("@alexkim", "@samlee")

    @pytest.mark.asyncio
    async def test_invalid_json(self, extractor: TaskExtractor, respond):
        respond("Sure! Here is your task.")
        with pytest.raises(ExtractionFailure):
            await extractor.extract("remind me")

    @pytest.mark.asyncio
    async def test_empty_response(self, extractor: TaskExtractor, respond):
        respond("")
        with pytest.raises(ExtractionFailure):
            await extractor.extract("remind me")

    @pytest.mark.asyncio
    async def test_non_object_json(self, extractor: TaskExtractor, respond):
        respond('["title"]')
        with pytest.raises(ExtractionFailure):
            await extractor.extract("remind me")

    @pytest.mark.asyncio
    async def test_api_error(self, extractor: TaskExtractor, mock_client: AsyncMock):
        mock_client.chat.completions.create = AsyncMock(side_effect=Exception("API Error"))
        with pytest.raises(ExtractionFailure, match="API Error"):
            await extractor.extract("remind me")

    @pytest.mark.asyncio
    async def test_empty_text(self, extractor: TaskExtractor, mock_client: AsyncMock):
        mock_client.chat.completions.create = AsyncMock()
        with pytest.raises(ExtractionFailure):
            await extractor.extract("   ")
        mock_client.chat.completions.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_without_model(self):
        with pytest.raises(ExtractionFailure):
            await TaskExtractor(None).extract("remind me to ship it in 5 minutes")


class TestExtractionFromDict:
    def test_ignores_junk(self):
        result = Extraction.from_dict(
            {"title": 42, "time": "  ", "assignee": None, "assignees": ["@a_user", 3, " "]}
        )
        assert result == Extraction(assignees=("@a_user",))

    def test_camel_case_reminder(self):
        assert Extraction.from_dict({"reminderPhrase": "in 5 minutes"}).reminder_phrase == "in 5 minutes"
