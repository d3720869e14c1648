"""Event Dispatcher.

Каждое событие webhook обрабатывается в собственной asyncio.Task, чтобы
ответ платформе уходил сразу, а долгие операции (GigaChat, распознавание
речи) не блокировали приём следующих событий.
"""

import asyncio
from collections.abc import Coroutine
from typing import Any

from loguru import logger


class EventDispatcher:
    """Запуск и учёт задач обработки событий."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, None], name: str | None = None) -> bool:
        """Запустить обработку события.

        Args:
            coro: Корутина обработки.
            name: Имя задачи (для логов).

        Returns:
            False, если диспетчер уже остановлен и событие не принято.

        """
        if self._closed:
            coro.close()
            logger.warning("Событие отклонено: диспетчер остановлен", name=name)
            return False

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._done)
        return True

    def _done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error("Задача обработки события завершилась с ошибкой", name=task.get_name())

    async def drain(self, timeout: float | None = None) -> None:
        """Дождаться завершения текущих событий и перестать принимать новые.

        Задачи, не успевшие завершиться за timeout, отменяются.
        """
        self._closed = True
        tasks = list(self._tasks)
        if not tasks:
            return

        logger.info("Ожидание обработки событий", pending=len(tasks))
        _, still_running = await asyncio.wait(tasks, timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning("Обработка событий прервана", cancelled=len(still_running))
