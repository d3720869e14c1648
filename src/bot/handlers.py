"""Обработчики команд и кнопок меню.

Команды /start, /help, /task, /tasks, /stats, /focus, /ai и кнопки
списка задач, статистики и AI помощника.
"""

from collections.abc import Awaitable, Callable

from loguru import logger

from src.bot import keyboards, texts
from src.core.constants import DEFAULT_STATS_WINDOW_DAYS, TASKS_PAGE_SIZE, TITLE_PREVIEW_LENGTH
from src.core.models import Reply
from src.services.dialogue import SessionStateMachine
from src.services.focus_timer import FocusTimerService
from src.services.task_store import TaskStore

CommandHandler = Callable[[int], Awaitable[Reply]]


def parse_command(text: str | None) -> str | None:
    """Выделить команду из текста ("/tasks@bot arg" -> "/tasks")."""
    if not text:
        return None
    token = text.strip().split(maxsplit=1)[0] if text.strip() else ""
    if not token.startswith("/"):
        return None
    return token.split("@", 1)[0].lower()


class CommandHandlers:
    """Команды верхнего уровня и кнопки меню."""

    def __init__(
        self,
        dialogue: SessionStateMachine,
        tasks: TaskStore,
        focus: FocusTimerService,
        focus_minutes: int,
        ai_enabled: bool,
    ) -> None:
        """Инициализировать обработчики.

        Args:
            dialogue: Диалог создания задачи (для /task).
            tasks: Хранилище задач.
            focus: Сервис фокус-таймеров.
            focus_minutes: Длительность фокус-сессии (для текста).
            ai_enabled: Доступен ли GigaChat.

        """
        self.dialogue = dialogue
        self.tasks = tasks
        self.focus = focus
        self.focus_minutes = focus_minutes
        self.ai_enabled = ai_enabled

        self.commands: dict[str, CommandHandler] = {
            "/start": self.start,
            "/help": self.help,
            "/task": self.dialogue.start,
            "/tasks": self.list_tasks,
            "/stats": self.stats,
            "/focus": self.start_focus,
            "/ai": self.ai_menu,
        }

    def resolve(self, text: str | None) -> CommandHandler | None:
        """Найти обработчик команды в тексте сообщения."""
        command = parse_command(text)
        if command is None:
            return None
        return self.commands.get(command)

    async def start(self, user_id: int) -> Reply:
        logger.info("Главное меню", user_id=user_id)
        return Reply(text=texts.WELCOME, keyboard=keyboards.main_menu())

    async def help(self, user_id: int) -> Reply:
        return Reply(text=texts.HELP, keyboard=keyboards.back_to_menu())

    async def unknown(self, user_id: int) -> Reply:
        return Reply(text=texts.UNKNOWN_COMMAND, keyboard=keyboards.help_button())

    async def list_tasks(self, user_id: int) -> Reply:
        """Первые активные задачи с кнопками просмотра."""
        tasks = await self.tasks.list_active(user_id)
        if not tasks:
            return Reply(text=texts.NO_TASKS, keyboard=keyboards.empty_task_list())

        return Reply(
            text=texts.task_list(tasks, TASKS_PAGE_SIZE, TITLE_PREVIEW_LENGTH),
            keyboard=keyboards.task_list(tasks, TASKS_PAGE_SIZE, TITLE_PREVIEW_LENGTH),
        )

    async def view_task(self, user_id: int, task_id: str) -> Reply:
        task = await self.tasks.get(task_id, user_id)
        if task is None:
            return Reply(toast=texts.TASK_NOT_FOUND)
        return Reply(text=texts.task_card(task), keyboard=keyboards.task_card(task))

    async def complete_task(self, user_id: int, task_id: str) -> Reply:
        if await self.tasks.complete(task_id, user_id):
            logger.info("Задача выполнена", user_id=user_id, task_id=task_id)
            return Reply(text=texts.TASK_COMPLETED, toast=texts.TASK_COMPLETED_TOAST)
        return Reply(toast=texts.TASK_COMPLETE_FAILED)

    async def delete_task(self, user_id: int, task_id: str) -> Reply:
        if await self.tasks.delete(task_id, user_id):
            logger.info("Задача удалена", user_id=user_id, task_id=task_id)
            return Reply(text=texts.TASK_DELETED, toast=texts.TASK_DELETED_TOAST)
        return Reply(toast=texts.TASK_DELETE_FAILED)

    async def stats(self, user_id: int) -> Reply:
        stats = await self.tasks.stats(user_id, DEFAULT_STATS_WINDOW_DAYS)
        return Reply(text=texts.stats_report(stats, DEFAULT_STATS_WINDOW_DAYS), keyboard=keyboards.stats())

    async def clear_completed(self, user_id: int) -> Reply:
        count = await self.tasks.clear_completed(user_id)
        text, toast = texts.stats_cleared(count)
        return Reply(text=text, toast=toast)

    async def start_focus(self, user_id: int) -> Reply:
        self.focus.start(user_id)
        return Reply(text=texts.FOCUS_STARTED.format(minutes=self.focus_minutes))

    async def ai_menu(self, user_id: int) -> Reply:
        if not self.ai_enabled:
            return Reply(text=texts.AI_DISABLED)
        return Reply(text=texts.AI_MENU, keyboard=keyboards.ai_menu())

    async def ai_create_task(self, user_id: int) -> Reply:
        if not self.ai_enabled:
            return Reply(text=texts.AI_DISABLED)
        return Reply(text=texts.AI_CREATE_TASK, keyboard=keyboards.ai_prompt())

    async def ai_ask(self, user_id: int) -> Reply:
        if not self.ai_enabled:
            return Reply(text=texts.AI_DISABLED)
        return Reply(text=texts.AI_ASK, keyboard=keyboards.ai_prompt())
