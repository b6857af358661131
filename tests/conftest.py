"""Shared fixtures."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest

from taskmate.conversation_logger import get_conversation_logger, reset_conversation_logger
from taskmate.errors import DeliveryError
from taskmate.gateway.base import message_text
from taskmate.llm import GroqChat
from taskmate.logging import configure_logger
from taskmate.tasks.store import TaskStore


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path: Path):
    """Keep JSONL and conversation logs out of the home directory."""
    configure_logger(tmp_path / "logs")
    reset_conversation_logger()
    get_conversation_logger(tmp_path / "conversations")
    yield
    reset_conversation_logger()


@pytest.fixture
def now() -> datetime:
    return datetime(2025, 10, 20, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path: Path) -> TaskStore:
    """Create a TaskStore with a temporary database."""
    store = TaskStore(tmp_path / "tasks.db")
    store.init_db()
    yield store
    store.close()


def make_response(content: str) -> Mock:
    """Create a mock LLM response."""
    response = Mock()
    response.choices = [Mock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def mock_client() -> AsyncMock:
    """Create a mock Groq client."""
    return AsyncMock()


@pytest.fixture
def chat(mock_client: AsyncMock) -> GroqChat:
    return GroqChat(mock_client)


@pytest.fixture
def respond(mock_client: AsyncMock):
    """Queue model responses on the mock client, one per call."""

    def _respond(*contents: str) -> AsyncMock:
        mock_client.chat.completions.create = AsyncMock(
            side_effect=[make_response(c) for c in contents]
        )
        return mock_client.chat.completions.create

    return _respond


class RecordingGateway:
    """Gateway that keeps everything it was asked to send."""

    def __init__(self, fail: bool = False) -> None:
        self.sent: list[tuple[str, object]] = []
        self.fail = fail

    async def send(self, channel_id, message) -> None:
        if self.fail:
            raise DeliveryError("platform unavailable")
        self.sent.append((channel_id, message))

    def texts(self) -> list[str]:
        return [message_text(m) for _, m in self.sent]


@pytest.fixture
def gateway() -> RecordingGateway:
    return RecordingGateway()


@pytest.fixture
def failing_gateway() -> RecordingGateway:
    return RecordingGateway(fail=True)
