"""Dialogue Router для MaxFlow Assistant.

Единственная точка входа для событий бота. Для каждого текстового сообщения
срабатывает не более одной интерпретации:

    1. команда (/start, /task, ...)
    2. активная сессия создания задачи (любое содержимое, включая /quit и голос)
    3. голосовое сообщение (если SaluteSpeech настроен)
    4. свободный текст (если GigaChat настроен, иначе подсказка /help)

Ошибки не выходят за пределы роутера: пользователь получает одно сообщение.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from uuid import uuid4

from loguru import logger

from src.bot import texts
from src.bot.handlers import CommandHandlers
from src.bot.routes import CallbackRoute, decode_callback
from src.core.enums import RouteKind
from src.core.models import InboundCallback, InboundMessage, Reply
from src.services.assistant import TaskAssistant
from src.services.dialogue import SessionStateMachine
from src.services.messenger import Messenger
from src.services.voice_pipeline import VoiceIngestionPipeline
from src.shared.errors import AppException, StateError, set_trace_id


class UserLocks:
    """Блокировки по пользователю.

    asyncio.Lock выдаётся ожидающим в порядке FIFO, поэтому события одного
    пользователя обрабатываются в порядке поступления. Блокировка удаляется,
    когда её никто не держит и не ждёт.
    """

    def __init__(self) -> None:
        self._locks: dict[int, asyncio.Lock] = {}
        self._holders: dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, user_id: int) -> AsyncIterator[None]:
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._holders[user_id] = self._holders.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[user_id] -= 1
            if self._holders[user_id] == 0:
                del self._holders[user_id]
                del self._locks[user_id]


class DialogueRouter:
    """Маршрутизация сообщений и callback'ов."""

    def __init__(
        self,
        messenger: Messenger,
        dialogue: SessionStateMachine,
        commands: CommandHandlers,
        assistant: TaskAssistant | None = None,
        voice: VoiceIngestionPipeline | None = None,
        started_at: datetime | None = None,
    ) -> None:
        """Инициализировать роутер.

        Args:
            messenger: Отправка ответов.
            dialogue: Диалог создания задачи.
            commands: Команды верхнего уровня.
            assistant: AI путь свободного текста (None - GigaChat не настроен).
            voice: Голосовой pipeline (None - SaluteSpeech не настроен).
            started_at: Время старта процесса; более ранние события пропускаются.

        """
        self.messenger = messenger
        self.dialogue = dialogue
        self.commands = commands
        self.assistant = assistant
        self.voice = voice
        self.started_at = started_at
        self.locks = UserLocks()

    def is_fresh(self, created_at: datetime | None) -> bool:
        """Событие создано после старта процесса."""
        if self.started_at is None or created_at is None:
            return True
        return created_at >= self.started_at

    # ==================== Messages ====================

    async def handle_message(self, message: InboundMessage) -> None:
        """Обработать входящее сообщение и отправить ответ."""
        set_trace_id(str(uuid4()))
        if not self.is_fresh(message.created_at):
            logger.debug("Устаревшее сообщение пропущено", user_id=message.user_id)
            return

        async with self.locks.hold(message.user_id):
            try:
                reply = await self.route_message(message)
            except AppException as e:
                logger.warning(
                    "Ошибка обработки сообщения",
                    user_id=message.user_id,
                    error_code=e.code,
                    error=e.message,
                )
                reply = Reply(text=e.user_message)
            except Exception:
                logger.exception("Необработанная ошибка при обработке сообщения", user_id=message.user_id)
                reply = Reply(text=texts.GENERIC_ERROR)

            if reply is not None and reply.text:
                await self._send(message.user_id, reply)

    async def route_message(self, message: InboundMessage) -> Reply | None:
        """Выбрать единственную интерпретацию сообщения.

        Returns:
            Ответ или None (сообщение без реакции).

        """
        user_id = message.user_id

        command = self.commands.resolve(message.text)
        if command is not None:
            return await command(user_id)

        if await self.dialogue.has_session(user_id):
            return await self.dialogue.handle_message(message)

        if message.audio is not None and self.voice is not None:
            return await self.voice.process(message)

        text = message.clean_text
        if not text or text.startswith("/"):
            return None

        if self.assistant is not None:
            return await self.assistant.process(user_id, text)
        return await self.commands.unknown(user_id)

    # ==================== Callbacks ====================

    async def handle_callback(self, callback: InboundCallback) -> None:
        """Обработать нажатие кнопки и ответить на callback."""
        set_trace_id(str(uuid4()))
        if not self.is_fresh(callback.created_at):
            logger.debug("Устаревший callback пропущен", user_id=callback.user_id)
            return

        route = decode_callback(callback.payload)
        logger.info("Callback получен", user_id=callback.user_id, route=route.kind.value, param=route.param)

        async with self.locks.hold(callback.user_id):
            try:
                reply = await self.route_callback(callback.user_id, route)
            except StateError as e:
                logger.info("Callback вне сессии", user_id=callback.user_id, error_code=e.code)
                reply = Reply(toast=e.user_message)
            except AppException as e:
                logger.warning(
                    "Ошибка обработки callback",
                    user_id=callback.user_id,
                    error_code=e.code,
                    error=e.message,
                )
                reply = Reply(text=e.user_message)
            except Exception:
                logger.exception("Необработанная ошибка при обработке callback", user_id=callback.user_id)
                reply = Reply(toast=texts.GENERIC_ERROR_TOAST)

            await self._answer(callback.callback_id, reply)

    async def route_callback(self, user_id: int, route: CallbackRoute) -> Reply:
        """Выполнить действие кнопки."""
        kind = route.kind
        simple = {
            RouteKind.MAIN_MENU: self.commands.start,
            RouteKind.HELP: self.commands.help,
            RouteKind.TASK_CREATE: self.dialogue.start,
            RouteKind.TASK_CANCEL: self.dialogue.cancel,
            RouteKind.TASKS_LIST: self.commands.list_tasks,
            RouteKind.STATS_SHOW: self.commands.stats,
            RouteKind.STATS_CLEAR: self.commands.clear_completed,
            RouteKind.FOCUS_START: self.commands.start_focus,
            RouteKind.AI_CREATE_TASK: self.commands.ai_create_task,
            RouteKind.AI_ASK: self.commands.ai_ask,
        }
        if kind in simple:
            return await simple[kind](user_id)

        by_task = {
            RouteKind.TASK_VIEW: self.commands.view_task,
            RouteKind.TASK_COMPLETE: self.commands.complete_task,
            RouteKind.TASK_DELETE: self.commands.delete_task,
        }
        if kind in by_task and route.param:
            return await by_task[kind](user_id, route.param)

        if kind is RouteKind.PRIORITY:
            return await self.dialogue.select_priority(user_id, route.priority)

        if kind is RouteKind.DEADLINE:
            return await self.dialogue.select_deadline(user_id, route.deadline)

        logger.warning("Неизвестный callback", user_id=user_id, payload=route.raw)
        return Reply(toast=texts.UNKNOWN_ACTION)

    # ==================== Delivery ====================

    async def _send(self, user_id: int, reply: Reply) -> None:
        try:
            await self.messenger.send_text(user_id, reply.text or "", reply.keyboard)
        except AppException as e:
            logger.error("Не удалось отправить ответ", user_id=user_id, error_code=e.code, error=e.message)
        except Exception:
            logger.exception("Не удалось отправить ответ", user_id=user_id)

    async def _answer(self, callback_id: str, reply: Reply) -> None:
        try:
            await self.messenger.answer_callback(
                callback_id,
                text=reply.text,
                keyboard=reply.keyboard,
                toast=reply.toast,
            )
        except AppException as e:
            logger.error("Не удалось ответить на callback", callback_id=callback_id, error_code=e.code)
        except Exception:
            logger.exception("Не удалось ответить на callback", callback_id=callback_id)
