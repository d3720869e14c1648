"""Тесты для хранилищ задач и сессий."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
import redis.exceptions

from src.core.enums import DialogueStep, Priority
from src.core.models import Session, Task
from src.services.session_store import InMemorySessionStore, RedisSessionStore
from src.services.task_store import InMemoryTaskStore, compute_stats, row_to_task, sort_active
from src.shared.errors import StorageError


def make_task(**kwargs) -> Task:
    defaults = {"id": "t", "user_id": 1, "title": "T"}
    return Task(**{**defaults, **kwargs})


class TestComputeStats:
    """Тесты статистики задач."""

    def test_counts(self, now: datetime):
        tasks = [
            make_task(id="1", priority=Priority.HIGH, completed=True, completed_at=now - timedelta(hours=1)),
            make_task(id="2", priority=Priority.HIGH, completed=True, completed_at=now - timedelta(days=3)),
            make_task(id="3", priority=Priority.MEDIUM, deadline=now - timedelta(days=1)),
            make_task(id="4", priority=Priority.LOW, deadline=now + timedelta(days=1)),
        ]

        stats = compute_stats(tasks, now)

        assert stats.total == 4
        assert stats.completed == 2
        assert stats.pending == 2
        assert stats.overdue == 1
        assert stats.completed_today == 1
        assert stats.completed_this_week == 2
        assert (stats.by_priority.high, stats.by_priority.medium, stats.by_priority.low) == (2, 1, 1)

    def test_empty(self, now: datetime):
        assert compute_stats([], now).total == 0


class TestSortActive:
    def test_priority_then_newest(self, now: datetime):
        tasks = [
            make_task(id="low", priority=Priority.LOW, created_at=now),
            make_task(id="high-old", priority=Priority.HIGH, created_at=now - timedelta(days=1)),
            make_task(id="high-new", priority=Priority.HIGH, created_at=now),
            make_task(id="medium", priority=Priority.MEDIUM, created_at=now),
        ]

        assert [t.id for t in sort_active(tasks)] == ["high-new", "high-old", "medium", "low"]


class TestInMemoryTaskStore:
    """Тесты InMemoryTaskStore."""

    @pytest.mark.asyncio
    async def test_lifecycle(self, tasks: InMemoryTaskStore):
        task_id = await tasks.create(user_id=1, title="Отчёт", description=None, priority=Priority.HIGH)

        task = await tasks.get(task_id, 1)
        assert task.description == ""
        assert [t.id for t in await tasks.list_active(1)] == [task_id]

        assert await tasks.complete(task_id, 1) is True
        assert await tasks.complete(task_id, 1) is False
        assert await tasks.list_active(1) == []

        assert await tasks.clear_completed(1) == 1
        assert await tasks.get(task_id, 1) is None

    @pytest.mark.asyncio
    async def test_ownership(self, tasks: InMemoryTaskStore):
        """Тест: пользователь не видит и не меняет чужие задачи."""
        task_id = await tasks.create(user_id=1, title="Моя")

        assert await tasks.get(task_id, 2) is None
        assert await tasks.complete(task_id, 2) is False
        assert await tasks.delete(task_id, 2) is False
        assert await tasks.delete(task_id, 1) is True

    @pytest.mark.asyncio
    async def test_stats_window(self, tasks: InMemoryTaskStore):
        await tasks.create(user_id=1, title="A")
        await tasks.create(user_id=2, title="B")

        stats = await tasks.stats(1)

        assert stats.total == 1
        assert stats.pending == 1


class TestRowToTask:
    def test_row_conversion(self):
        """Тест: неизвестный приоритет - medium, naive datetime - UTC."""
        row = {
            "id": "0b7d8a4e-3c1f-4a53-9b0e-2f1d5c6e7a80",
            "user_id": 5,
            "title": "T",
            "description": None,
            "deadline": datetime(2025, 1, 1, 12, 0),
            "priority": "urgent",
            "completed": False,
            "completed_at": None,
            "created_at": datetime(2024, 12, 31, 9, 0),
        }

        task = row_to_task(row)

        assert task.priority is Priority.MEDIUM
        assert task.description == ""
        assert task.deadline.tzinfo is not None
        assert task.created_at == datetime(2024, 12, 31, 9, 0, tzinfo=timezone.utc)


class TestInMemorySessionStore:
    """Тесты InMemorySessionStore."""

    @pytest.mark.asyncio
    async def test_get_returns_copy(self, sessions: InMemorySessionStore):
        await sessions.set(Session(user_id=1))

        session = await sessions.get(1)
        session.step = DialogueStep.PRIORITY

        assert (await sessions.get(1)).step is DialogueStep.TITLE

    @pytest.mark.asyncio
    async def test_clear(self, sessions: InMemorySessionStore):
        await sessions.set(Session(user_id=1))
        await sessions.set(Session(user_id=2))

        assert await sessions.clear() == 2
        assert await sessions.get(1) is None


class TestRedisSessionStore:
    """Тесты RedisSessionStore с mock Redis."""

    @pytest.mark.asyncio
    async def test_set_uses_ttl(self, mock_redis: MagicMock):
        store = RedisSessionStore(mock_redis, ttl_seconds=600)
        session = Session(user_id=7, step=DialogueStep.DESCRIPTION, draft={"title": "Отчёт"})

        await store.set(session)

        key, ttl, payload = mock_redis.setex.call_args.args
        assert key == "dialogue:7"
        assert ttl == 600
        data = orjson.loads(payload)
        assert data["step"] == "description"
        assert data["draft"]["title"] == "Отчёт"

    @pytest.mark.asyncio
    async def test_get(self, mock_redis: MagicMock):
        stored = Session(user_id=7, step=DialogueStep.DEADLINE, draft={"title": "T", "priority": "low"})
        mock_redis.get.return_value = orjson.dumps(stored.model_dump(mode="json"))
        store = RedisSessionStore(mock_redis, ttl_seconds=600)

        session = await store.get(7)

        assert session.step is DialogueStep.DEADLINE
        assert session.draft.priority is Priority.LOW
        mock_redis.get.assert_awaited_once_with("dialogue:7")

    @pytest.mark.asyncio
    async def test_get_missing(self, mock_redis: MagicMock):
        store = RedisSessionStore(mock_redis, ttl_seconds=600)

        assert await store.get(7) is None

    @pytest.mark.asyncio
    async def test_corrupt_session_removed(self, mock_redis: MagicMock):
        mock_redis.get.return_value = b"{not json"
        store = RedisSessionStore(mock_redis, ttl_seconds=600)

        assert await store.get(7) is None
        mock_redis.delete.assert_awaited_once_with("dialogue:7")

    @pytest.mark.asyncio
    async def test_clear(self, mock_redis: MagicMock):
        async def scan_iter(match: str):
            assert match == "dialogue:*"
            for key in (b"dialogue:1", b"dialogue:2"):
                yield key

        mock_redis.scan_iter = scan_iter
        mock_redis.delete.return_value = 2
        store = RedisSessionStore(mock_redis, ttl_seconds=600)

        assert await store.clear() == 2
        mock_redis.delete.assert_awaited_once_with(b"dialogue:1", b"dialogue:2")

    @pytest.mark.asyncio
    async def test_redis_error_mapped(self, mock_redis: MagicMock):
        """Тест: ошибка Redis превращается в StorageError."""
        mock_redis.get = AsyncMock(side_effect=redis.exceptions.ConnectionError("refused"))
        store = RedisSessionStore(mock_redis, ttl_seconds=600)

        with pytest.raises(StorageError):
            await store.get(7)
