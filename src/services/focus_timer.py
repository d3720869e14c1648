"""Focus Timer для MaxFlow Assistant.

Pomodoro таймеры: уведомление пользователю по окончании фокус-сессии.
Каждый таймер - собственная asyncio.Task, поэтому при остановке процесса
все ожидающие таймеры отменяются.
"""

import asyncio

from loguru import logger

from src.bot import texts
from src.services.messenger import Messenger
from src.shared.errors import AppException


class FocusTimerService:
    """Таймеры фокус-сессий (один на пользователя)."""

    def __init__(self, messenger: Messenger, duration_seconds: float) -> None:
        """Инициализировать сервис.

        Args:
            messenger: Отправка уведомлений.
            duration_seconds: Длительность фокус-сессии.

        """
        self.messenger = messenger
        self.duration = duration_seconds
        self._timers: dict[int, asyncio.Task[None]] = {}

    @property
    def active_users(self) -> list[int]:
        return [user_id for user_id, task in self._timers.items() if not task.done()]

    def start(self, user_id: int) -> None:
        """Запустить таймер (перезапускает уже идущий)."""
        self.cancel(user_id)
        task = asyncio.create_task(self._run(user_id), name=f"focus-timer-{user_id}")
        self._timers[user_id] = task
        task.add_done_callback(lambda t, uid=user_id: self._forget(uid, t))
        logger.info("Фокус-таймер запущен", user_id=user_id, duration_seconds=self.duration)

    def cancel(self, user_id: int) -> bool:
        """Отменить таймер пользователя.

        Returns:
            True, если был активный таймер.

        """
        task = self._timers.pop(user_id, None)
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("Фокус-таймер отменён", user_id=user_id)
        return True

    async def shutdown(self) -> None:
        """Отменить все ожидающие таймеры."""
        tasks = list(self._timers.values())
        self._timers.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Фокус-таймеры остановлены", cancelled=len(tasks))

    def _forget(self, user_id: int, task: asyncio.Task[None]) -> None:
        if self._timers.get(user_id) is task:
            del self._timers[user_id]

    async def _run(self, user_id: int) -> None:
        await asyncio.sleep(self.duration)
        try:
            await self.messenger.send_text(user_id, texts.FOCUS_FINISHED)
            logger.info("Фокус-сессия завершена", user_id=user_id)
        except AppException as e:
            logger.error("Не удалось отправить уведомление таймера", user_id=user_id, error_code=e.code)
        except Exception:
            logger.exception("Не удалось отправить уведомление таймера", user_id=user_id)
