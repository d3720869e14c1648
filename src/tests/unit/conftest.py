"""Pytest configuration для unit тестов."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.models import Keyboard
from src.services.deadline_resolver import DeadlineResolver
from src.services.session_store import InMemorySessionStore
from src.services.task_store import InMemoryTaskStore

FIXED_NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


class FakeMessenger:
    """Messenger, запоминающий отправленные сообщения."""

    def __init__(self) -> None:
        self.sent: list[tuple[int, str, Keyboard | None]] = []
        self.answers: list[dict] = []

    async def send_text(self, user_id: int, text: str, keyboard: Keyboard | None = None) -> None:
        self.sent.append((user_id, text, keyboard))

    async def answer_callback(
        self,
        callback_id: str,
        text: str | None = None,
        keyboard: Keyboard | None = None,
        toast: str | None = None,
    ) -> None:
        self.answers.append({"callback_id": callback_id, "text": text, "keyboard": keyboard, "toast": toast})

    @property
    def texts(self) -> list[str]:
        return [text for _, text, _ in self.sent]


@pytest.fixture
def now() -> datetime:
    """Фиксированное текущее время."""
    return FIXED_NOW


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def sessions() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def tasks() -> InMemoryTaskStore:
    return InMemoryTaskStore()


@pytest.fixture
def resolver() -> DeadlineResolver:
    return DeadlineResolver()


@pytest.fixture
def mock_redis() -> MagicMock:
    """Mock Redis client для тестирования."""
    redis = MagicMock()
    redis.get = AsyncMock(return_value=None)
    redis.setex = AsyncMock()
    redis.delete = AsyncMock(return_value=1)
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()
    return redis
