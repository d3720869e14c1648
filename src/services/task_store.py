"""Task Store для MaxFlow Assistant.

Хранилище задач: in-memory (тесты, локальный запуск) и PostgreSQL (asyncpg)
поверх таблицы tasks веб-приложения.
"""

import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, time, timedelta, timezone
from typing import Any, Protocol, runtime_checkable

import asyncpg
from loguru import logger

from src.core.config import DatabaseSettings
from src.core.constants import DEFAULT_STATS_WINDOW_DAYS
from src.core.enums import Priority
from src.core.models import PriorityBreakdown, Task, TaskStats, utcnow
from src.shared.errors import StorageError, safe_deco

PRIORITY_ORDER = {Priority.HIGH: 1, Priority.MEDIUM: 2, Priority.LOW: 3}


@runtime_checkable
class TaskStore(Protocol):
    """Интерфейс хранилища задач."""

    async def create(
        self,
        user_id: int,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
        priority: Priority = Priority.MEDIUM,
    ) -> str:
        """Создать задачу и вернуть её ID."""
        ...

    async def get(self, task_id: str, user_id: int) -> Task | None:
        """Получить задачу пользователя."""
        ...

    async def list_active(self, user_id: int) -> list[Task]:
        """Активные задачи: по приоритету, затем новые первыми."""
        ...

    async def complete(self, task_id: str, user_id: int) -> bool:
        """Отметить задачу выполненной."""
        ...

    async def delete(self, task_id: str, user_id: int) -> bool:
        """Удалить задачу."""
        ...

    async def stats(self, user_id: int, window_days: int = DEFAULT_STATS_WINDOW_DAYS) -> TaskStats:
        """Статистика задач, созданных за window_days дней."""
        ...

    async def clear_completed(self, user_id: int) -> int:
        """Удалить выполненные задачи и вернуть их количество."""
        ...


def compute_stats(tasks: Iterable[Task], now: datetime | None = None) -> TaskStats:
    """Посчитать статистику по списку задач.

    Args:
        tasks: Задачи за окно статистики.
        now: Текущее время (UTC).

    Returns:
        Заполненная TaskStats.

    """
    now = now or utcnow()
    today_start = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    week_start = now - timedelta(days=7)

    stats = TaskStats(by_priority=PriorityBreakdown())
    for task in tasks:
        stats.total += 1
        if task.completed:
            stats.completed += 1
            if task.completed_at is not None:
                if task.completed_at >= today_start:
                    stats.completed_today += 1
                if task.completed_at >= week_start:
                    stats.completed_this_week += 1
        else:
            stats.pending += 1
            if task.is_overdue(now):
                stats.overdue += 1

        current = getattr(stats.by_priority, task.priority.value)
        setattr(stats.by_priority, task.priority.value, current + 1)

    return stats


def sort_active(tasks: Iterable[Task]) -> list[Task]:
    """Отсортировать задачи: high, medium, low, затем новые первыми."""
    by_created = sorted(tasks, key=lambda t: t.created_at, reverse=True)
    return sorted(by_created, key=lambda t: PRIORITY_ORDER[t.priority])


class InMemoryTaskStore:
    """Хранилище задач в памяти процесса."""

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}

    @property
    def tasks(self) -> list[Task]:
        """Все задачи (для тестов и отладки)."""
        return list(self._tasks.values())

    def _owned(self, task_id: str, user_id: int) -> Task | None:
        task = self._tasks.get(task_id)
        if task is None or task.user_id != user_id:
            return None
        return task

    async def create(
        self,
        user_id: int,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
        priority: Priority = Priority.MEDIUM,
    ) -> str:
        task = Task(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            description=description or "",
            deadline=deadline,
            priority=priority,
        )
        self._tasks[task.id] = task
        logger.info("Задача создана", task_id=task.id, user_id=user_id, priority=priority.value)
        return task.id

    async def get(self, task_id: str, user_id: int) -> Task | None:
        return self._owned(task_id, user_id)

    async def list_active(self, user_id: int) -> list[Task]:
        return sort_active(t for t in self._tasks.values() if t.user_id == user_id and not t.completed)

    async def complete(self, task_id: str, user_id: int) -> bool:
        task = self._owned(task_id, user_id)
        if task is None or task.completed:
            return False
        task.completed = True
        task.completed_at = utcnow()
        return True

    async def delete(self, task_id: str, user_id: int) -> bool:
        if self._owned(task_id, user_id) is None:
            return False
        del self._tasks[task_id]
        return True

    async def stats(self, user_id: int, window_days: int = DEFAULT_STATS_WINDOW_DAYS) -> TaskStats:
        since = utcnow() - timedelta(days=window_days)
        return compute_stats(t for t in self._tasks.values() if t.user_id == user_id and t.created_at >= since)

    async def clear_completed(self, user_id: int) -> int:
        ids = [t.id for t in self._tasks.values() if t.user_id == user_id and t.completed]
        for task_id in ids:
            del self._tasks[task_id]
        return len(ids)


def _aware(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _parse_uuid(task_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(task_id)
    except ValueError:
        return None


def row_to_task(row: Mapping[str, Any]) -> Task:
    """Преобразовать строку таблицы tasks в Task.

    Неизвестный приоритет (его может записать веб-приложение) считается средним.
    """
    try:
        priority = Priority(row["priority"])
    except ValueError:
        priority = Priority.MEDIUM

    return Task(
        id=str(row["id"]),
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"] or "",
        deadline=_aware(row["deadline"]),
        priority=priority,
        completed=row["completed"],
        completed_at=_aware(row["completed_at"]),
        created_at=_aware(row["created_at"]),
    )


class PostgresTaskStore:
    """Хранилище задач в PostgreSQL (asyncpg)."""

    SOURCE = "postgres"

    def __init__(self, config: DatabaseSettings) -> None:
        """Инициализировать хранилище.

        Args:
            config: Настройки БД.

        """
        self.config = config
        self._pool: asyncpg.Pool | None = None

    @safe_deco(SOURCE)
    async def connect(self) -> None:
        """Создать пул соединений."""
        if self._pool is None:
            self._pool = await asyncpg.create_pool(
                self.config.url,
                min_size=self.config.pool_min,
                max_size=self.config.pool_max,
                command_timeout=30,
            )
            logger.info("Пул PostgreSQL создан", host=self.config.host, database=self.config.name)

    async def close(self) -> None:
        """Закрыть пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            logger.info("Пул PostgreSQL закрыт")

    @property
    def pool(self) -> asyncpg.Pool:
        if self._pool is None:
            raise StorageError(message="Пул PostgreSQL не инициализирован", details={"source": self.SOURCE})
        return self._pool

    @safe_deco(SOURCE)
    async def create(
        self,
        user_id: int,
        title: str,
        description: str | None = None,
        deadline: datetime | None = None,
        priority: Priority = Priority.MEDIUM,
    ) -> str:
        task_id = await self.pool.fetchval(
            """
            INSERT INTO tasks (user_id, title, description, deadline, priority, completed,
                               tags, subtasks, call_link, attachments)
            VALUES ($1, $2, $3, $4, $5, false, '{}', '[]', '', '{}')
            RETURNING id
            """,
            user_id,
            title,
            description or "",
            deadline,
            priority.value,
        )
        if task_id is None:
            raise StorageError(message="INSERT не вернул ID задачи", details={"user_id": user_id})

        logger.info("Задача создана", task_id=str(task_id), user_id=user_id, priority=priority.value)
        return str(task_id)

    @safe_deco(SOURCE)
    async def get(self, task_id: str, user_id: int) -> Task | None:
        key = _parse_uuid(task_id)
        if key is None:
            return None
        row = await self.pool.fetchrow("SELECT * FROM tasks WHERE id = $1 AND user_id = $2", key, user_id)
        return row_to_task(row) if row else None

    @safe_deco(SOURCE)
    async def list_active(self, user_id: int) -> list[Task]:
        rows = await self.pool.fetch(
            """
            SELECT * FROM tasks
            WHERE user_id = $1 AND completed = false
            ORDER BY
              CASE priority WHEN 'high' THEN 1 WHEN 'medium' THEN 2 WHEN 'low' THEN 3 ELSE 4 END,
              created_at DESC
            """,
            user_id,
        )
        return [row_to_task(row) for row in rows]

    @safe_deco(SOURCE)
    async def complete(self, task_id: str, user_id: int) -> bool:
        key = _parse_uuid(task_id)
        if key is None:
            return False
        updated = await self.pool.fetchval(
            """
            UPDATE tasks SET completed = true, completed_at = NOW()
            WHERE id = $1 AND user_id = $2 AND completed = false
            RETURNING id
            """,
            key,
            user_id,
        )
        return updated is not None

    @safe_deco(SOURCE)
    async def delete(self, task_id: str, user_id: int) -> bool:
        key = _parse_uuid(task_id)
        if key is None:
            return False
        deleted = await self.pool.fetchval(
            "DELETE FROM tasks WHERE id = $1 AND user_id = $2 RETURNING id",
            key,
            user_id,
        )
        return deleted is not None

    @safe_deco(SOURCE)
    async def stats(self, user_id: int, window_days: int = DEFAULT_STATS_WINDOW_DAYS) -> TaskStats:
        since = utcnow() - timedelta(days=window_days)
        rows = await self.pool.fetch(
            "SELECT * FROM tasks WHERE user_id = $1 AND created_at >= $2 ORDER BY created_at DESC",
            user_id,
            since,
        )
        return compute_stats(row_to_task(row) for row in rows)

    @safe_deco(SOURCE)
    async def clear_completed(self, user_id: int) -> int:
        rows = await self.pool.fetch(
            "DELETE FROM tasks WHERE user_id = $1 AND completed = true RETURNING id",
            user_id,
        )
        logger.info("Выполненные задачи удалены", user_id=user_id, count=len(rows))
        return len(rows)
