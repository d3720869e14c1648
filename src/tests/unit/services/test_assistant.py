"""Тесты для TaskAssistant."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bot import texts
from src.core.enums import MessageSource, Priority
from src.core.models import TaskIntent
from src.services.assistant import TaskAssistant
from src.services.deadline_resolver import DeadlineResolver
from src.services.task_store import InMemoryTaskStore
from src.shared.errors import ServiceError, StorageError


@pytest.fixture
def extractor() -> MagicMock:
    mock = MagicMock()
    mock.parse_task_intent = AsyncMock(return_value=TaskIntent(is_task_creation=False))
    mock.answer_question = AsyncMock(return_value="Разбейте задачу на шаги.")
    return mock


@pytest.fixture
def assistant(
    extractor: MagicMock, tasks: InMemoryTaskStore, resolver: DeadlineResolver, now: datetime
) -> TaskAssistant:
    return TaskAssistant(extractor, tasks, resolver, clock=lambda: now)


class TestTaskCreation:
    """Тесты создания задачи из намерения."""

    @pytest.mark.asyncio
    async def test_creates_task_with_resolved_deadline(
        self, assistant: TaskAssistant, extractor: MagicMock, tasks: InMemoryTaskStore
    ):
        extractor.parse_task_intent.return_value = TaskIntent(
            is_task_creation=True, title="Купить молоко", priority=Priority.HIGH, deadline_text="завтра"
        )

        reply = await assistant.process(1, "купи молоко завтра")

        [task] = tasks.tasks
        assert task.title == "Купить молоко"
        assert task.priority is Priority.HIGH
        assert task.deadline == datetime(2025, 3, 11, 23, 59, 59, 999000, tzinfo=timezone.utc)
        assert "через AI" in reply.text
        assert "завтра" in reply.text
        extractor.answer_question.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_default_priority_and_unparsed_deadline(
        self, assistant: TaskAssistant, extractor: MagicMock, tasks: InMemoryTaskStore
    ):
        """Тест: без приоритета - medium, нераспознанный дедлайн - без дедлайна."""
        extractor.parse_task_intent.return_value = TaskIntent(
            is_task_creation=True, title="Отчёт", deadline_text="когда-нибудь"
        )

        reply = await assistant.process(1, "отчёт когда-нибудь")

        assert tasks.tasks[0].priority is Priority.MEDIUM
        assert tasks.tasks[0].deadline is None
        assert "не задан" in reply.text

    @pytest.mark.asyncio
    async def test_voice_heading(self, assistant: TaskAssistant, extractor: MagicMock):
        extractor.parse_task_intent.return_value = TaskIntent(is_task_creation=True, title="Позвонить")

        reply = await assistant.process(1, "позвонить", MessageSource.VOICE)

        assert "из голосового сообщения" in reply.text

    @pytest.mark.asyncio
    async def test_storage_failure(self, extractor: MagicMock, resolver: DeadlineResolver):
        extractor.parse_task_intent.return_value = TaskIntent(is_task_creation=True, title="X")
        store = MagicMock()
        store.create = AsyncMock(side_effect=StorageError(message="db down"))

        reply = await TaskAssistant(extractor, store, resolver).process(1, "x")

        assert reply.text == texts.TASK_CREATE_FAILED


class TestQuestionAnswering:
    """Тесты ответа на вопрос."""

    @pytest.mark.asyncio
    async def test_answer_with_task_context(
        self, assistant: TaskAssistant, extractor: MagicMock, tasks: InMemoryTaskStore
    ):
        await tasks.create(user_id=1, title="A")
        await tasks.create(user_id=1, title="B")

        reply = await assistant.process(1, "Как лучше планировать день?")

        assert "Разбейте задачу на шаги." in reply.text
        extractor.answer_question.assert_awaited_once_with(
            "Как лучше планировать день?", texts.tasks_context(2)
        )

    @pytest.mark.asyncio
    async def test_voice_answer_has_rephrase_hint(self, assistant: TaskAssistant):
        reply = await assistant.process(1, "вопрос", MessageSource.VOICE)

        assert texts.VOICE_REPHRASE_HINT in reply.text

    @pytest.mark.asyncio
    async def test_answer_failure(self, assistant: TaskAssistant, extractor: MagicMock):
        extractor.answer_question.side_effect = ServiceError("gigachat", "timeout")

        reply = await assistant.process(1, "вопрос")

        assert reply.text == texts.AI_ANSWER_FAILED
