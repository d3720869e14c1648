"""Task Assistant для MaxFlow Assistant.

Общий путь свободного текста (сообщение или расшифровка голосового):
определить намерение, затем создать задачу или ответить на вопрос.
"""

from collections.abc import Callable
from datetime import datetime

from loguru import logger

from src.bot import keyboards, texts
from src.core.enums import MessageSource, Priority
from src.core.models import Reply, TaskIntent, utcnow
from src.services.deadline_resolver import DeadlineResolver
from src.services.intent_extractor import IntentExtractor
from src.services.task_store import TaskStore
from src.shared.errors import AppException

CREATED_HEADINGS = {
    MessageSource.TEXT: "✅ **Задача создана через AI!**",
    MessageSource.VOICE: "✅ **Задача создана из голосового сообщения!**",
}


class TaskAssistant:
    """Создание задач и ответы на вопросы на естественном языке."""

    def __init__(
        self,
        extractor: IntentExtractor,
        tasks: TaskStore,
        resolver: DeadlineResolver,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Инициализировать assistant.

        Args:
            extractor: Извлечение намерений (GigaChat).
            tasks: Хранилище задач.
            resolver: Разбор дедлайнов.
            clock: Источник текущего времени (UTC).

        """
        self.extractor = extractor
        self.tasks = tasks
        self.resolver = resolver
        self.clock = clock

    async def process(self, user_id: int, text: str, source: MessageSource = MessageSource.TEXT) -> Reply:
        """Обработать текст пользователя.

        Args:
            user_id: ID пользователя.
            text: Текст сообщения или расшифровка.
            source: Откуда пришёл текст.

        Returns:
            Единственный ответ пользователю.

        """
        intent = await self.extractor.parse_task_intent(text)

        if intent.creates_task:
            return await self.create_task(user_id, intent, source)
        return await self.answer(user_id, text, source)

    async def create_task(self, user_id: int, intent: TaskIntent, source: MessageSource) -> Reply:
        """Создать задачу по извлечённому намерению."""
        priority = intent.priority or Priority.MEDIUM
        deadline = self.resolver.resolve(intent.deadline_text, self.clock())

        try:
            task_id = await self.tasks.create(
                user_id=user_id,
                title=intent.title or "",
                description=intent.description,
                deadline=deadline,
                priority=priority,
            )
        except AppException as e:
            logger.error("Не удалось создать задачу из намерения", user_id=user_id, error_code=e.code)
            return Reply(text=texts.TASK_CREATE_FAILED)

        logger.info(
            "Задача создана через AI",
            user_id=user_id,
            task_id=task_id,
            source=source.value,
            priority=priority.value,
            has_deadline=deadline is not None,
        )

        keyboard = keyboards.voice_task_created() if source is MessageSource.VOICE else keyboards.ai_task_created()
        return Reply(
            text=texts.task_created(
                intent.title or "",
                priority,
                intent.deadline_text if deadline else None,
                description=intent.description,
                heading=CREATED_HEADINGS[source],
            ),
            keyboard=keyboard,
        )

    async def answer(self, user_id: int, text: str, source: MessageSource) -> Reply:
        """Ответить на текст как на вопрос."""
        try:
            active = await self.tasks.list_active(user_id)
            context = texts.tasks_context(len(active))
        except AppException as e:
            # Без контекста ответ всё равно полезен
            logger.warning("Контекст задач недоступен", user_id=user_id, error_code=e.code)
            context = None

        try:
            answer = await self.extractor.answer_question(text, context)
        except AppException as e:
            logger.error("AI не ответил на вопрос", user_id=user_id, error_code=e.code, error=e.message)
            return Reply(text=texts.AI_ANSWER_FAILED)

        if source is MessageSource.VOICE:
            return Reply(text=texts.voice_answer(answer), keyboard=keyboards.voice_answered())
        return Reply(text=texts.ai_answer(answer), keyboard=keyboards.ai_answered())
