"""Session State Machine для MaxFlow Assistant.

Пошаговое создание задачи:

    (none) --start--> title --text--> description --text--> priority
    priority --select--> deadline
    deadline --select(today|tomorrow|3days|week|none)--> persist --> (none)
    deadline --select(custom_hours)--> deadline_hours --valid--> persist
    deadline --select(custom_date)--> deadline_date --valid--> persist
    любое состояние --/quit или отмена--> (none)
"""

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from src.bot import keyboards, texts
from src.core.constants import QUIT_COMMAND
from src.core.enums import DeadlineChoice, DialogueStep, Priority
from src.core.models import InboundMessage, Reply, Session, utcnow
from src.services.deadline_resolver import DeadlineResolver
from src.services.session_store import SessionStore
from src.services.task_store import TaskStore
from src.shared.errors import SessionExpiredError, StepMismatchError, ValidationError

PRIORITY_STEPS = {DialogueStep.PRIORITY, DialogueStep.DEADLINE}
DEADLINE_STEPS = {DialogueStep.DEADLINE, DialogueStep.DEADLINE_HOURS, DialogueStep.DEADLINE_DATE}


class SessionStateMachine:
    """Диалог создания задачи поверх SessionStore."""

    def __init__(
        self,
        sessions: SessionStore,
        tasks: TaskStore,
        resolver: DeadlineResolver,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Инициализировать state machine.

        Args:
            sessions: Хранилище сессий.
            tasks: Хранилище задач.
            resolver: Разбор дедлайнов.
            clock: Источник текущего времени (UTC).

        """
        self.sessions = sessions
        self.tasks = tasks
        self.resolver = resolver
        self.clock = clock

    async def has_session(self, user_id: int) -> bool:
        return await self.sessions.get(user_id) is not None

    async def start(self, user_id: int) -> Reply:
        """Начать (или перезапустить) создание задачи."""
        await self.sessions.set(Session(user_id=user_id, step=DialogueStep.TITLE))
        logger.info("Диалог создания задачи начат", user_id=user_id)
        return Reply(text=texts.ASK_TITLE, keyboard=keyboards.cancel())

    async def cancel(self, user_id: int) -> Reply:
        """Отменить создание задачи без сохранения."""
        await self.sessions.delete(user_id)
        logger.info("Диалог создания задачи отменён", user_id=user_id)
        return Reply(text=texts.DIALOGUE_CANCELLED)

    async def handle_message(self, message: InboundMessage) -> Reply | None:
        """Обработать сообщение пользователя с активной сессией.

        Args:
            message: Входящее сообщение.

        Returns:
            Ответ пользователю или None, если сессии уже нет.

        """
        session = await self.sessions.get(message.user_id)
        if session is None:
            return None

        text = message.clean_text
        if not text:
            # Голосовое или вложение без текста посреди диалога
            return Reply(text=texts.TEXT_EXPECTED, keyboard=keyboards.cancel())

        if text.lower() == QUIT_COMMAND:
            return await self.cancel(message.user_id)

        step = session.step
        if step is DialogueStep.TITLE:
            session.draft.title = text
            session.step = DialogueStep.DESCRIPTION
            await self.sessions.set(session)
            return Reply(text=texts.ASK_DESCRIPTION, keyboard=keyboards.cancel())

        if step is DialogueStep.DESCRIPTION:
            session.draft.description = text
            session.step = DialogueStep.PRIORITY
            await self.sessions.set(session)
            return Reply(text=texts.ASK_PRIORITY, keyboard=keyboards.priority_choice())

        if step is DialogueStep.PRIORITY:
            return Reply(text=texts.ASK_PRIORITY, keyboard=keyboards.priority_choice())

        if step is DialogueStep.DEADLINE:
            return Reply(text=texts.ASK_DEADLINE, keyboard=keyboards.deadline_choice())

        if step is DialogueStep.DEADLINE_HOURS:
            return await self._accept_hours(session, text)

        return await self._accept_date(session, text)

    async def select_priority(self, user_id: int, priority: Priority) -> Reply:
        """Выбор приоритета кнопкой.

        Raises:
            SessionExpiredError: Если сессии нет.

        """
        session = await self._require(user_id)
        if session.step not in PRIORITY_STEPS:
            raise StepMismatchError(user_id, session.step.value, "priority")

        session.draft.priority = priority
        session.step = DialogueStep.DEADLINE
        await self.sessions.set(session)
        return Reply(text=texts.priority_set(priority), keyboard=keyboards.deadline_choice())

    async def select_deadline(self, user_id: int, choice: DeadlineChoice) -> Reply:
        """Выбор дедлайна кнопкой.

        Raises:
            SessionExpiredError: Если сессии нет.

        """
        session = await self._require(user_id)
        if session.step not in DEADLINE_STEPS:
            raise StepMismatchError(user_id, session.step.value, "deadline")

        if choice is DeadlineChoice.CUSTOM_HOURS:
            session.step = DialogueStep.DEADLINE_HOURS
            await self.sessions.set(session)
            return Reply(text=texts.ASK_HOURS, keyboard=keyboards.cancel())

        if choice is DeadlineChoice.CUSTOM_DATE:
            session.step = DialogueStep.DEADLINE_DATE
            await self.sessions.set(session)
            return Reply(text=texts.ASK_DATE, keyboard=keyboards.cancel())

        deadline = self.resolver.preset(choice, self.clock())
        display = texts.format_date(deadline) if deadline else None
        text = await self._persist(session, deadline, display)
        return Reply(text=text, toast=texts.TASK_SAVED_TOAST)

    async def _require(self, user_id: int) -> Session:
        session = await self.sessions.get(user_id)
        if session is None:
            raise SessionExpiredError(user_id)
        return session

    async def _accept_hours(self, session: Session, text: str) -> Reply:
        try:
            hours = self.resolver.parse_hours(text)
        except ValidationError as e:
            logger.info("Некорректный ввод часов", user_id=session.user_id, error=e.message)
            return Reply(text=e.user_message, keyboard=keyboards.cancel())

        deadline = self.resolver.hours_from_now(str(hours), self.clock())
        return Reply(text=await self._persist(session, deadline, f"через {hours} ч."))

    async def _accept_date(self, session: Session, text: str) -> Reply:
        try:
            deadline = self.resolver.parse_date(text, self.clock())
        except ValidationError as e:
            logger.info("Некорректный ввод даты", user_id=session.user_id, error=e.message)
            return Reply(text=e.user_message, keyboard=keyboards.cancel())

        display = text if "-" in text else deadline.date().isoformat()
        return Reply(text=await self._persist(session, deadline, display))

    async def _persist(self, session: Session, deadline: datetime | None, display: str | None) -> str:
        """Сохранить задачу из черновика и завершить сессию.

        Сессия удаляется только после успешной записи.

        Returns:
            Текст подтверждения.

        """
        draft = session.draft
        if not draft.title:
            await self.sessions.delete(session.user_id)
            raise SessionExpiredError(session.user_id)

        priority = draft.priority or Priority.MEDIUM
        task_id = await self.tasks.create(
            user_id=session.user_id,
            title=draft.title,
            description=draft.description,
            deadline=deadline,
            priority=priority,
        )
        await self.sessions.delete(session.user_id)

        logger.info(
            "Задача создана через диалог",
            user_id=session.user_id,
            task_id=task_id,
            priority=priority.value,
            has_deadline=deadline is not None,
        )
        return texts.task_created(draft.title, priority, display)
