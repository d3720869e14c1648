"""Intent Extractor для MaxFlow Assistant.

Определение намерения пользователя (создать задачу или задать вопрос)
и ответы на вопросы через GigaChat.
"""

import orjson
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from src.core.constants import INTENT_TEMPERATURE
from src.core.models import TaskIntent
from src.providers.gigachat import ChatMessage, GigaChatClient
from src.shared.errors import AppException

INTENT_SYSTEM_PROMPT = """Ты - помощник по анализу намерений пользователя в системе управления задачами.
Твоя задача - определить, хочет ли пользователь создать задачу, и извлечь из его сообщения:
- Название задачи (title)
- Описание задачи (description)
- Приоритет (priority): high, medium или low
- Дедлайн (deadline) в формате "сегодня", "завтра", "через N дней/часов" или конкретную дату

Отвечай ТОЛЬКО в формате JSON без дополнительного текста:
{
  "isTaskCreation": true/false,
  "title": "название задачи",
  "description": "описание",
  "priority": "high/medium/low",
  "deadline": "сегодня/завтра/через 3 дня/2024-12-31"
}

Если пользователь НЕ хочет создать задачу, верни: {"isTaskCreation": false}"""

ASSISTANT_SYSTEM_PROMPT = """Ты - AI-помощник в системе управления задачами MaxFlow Zen.
Твоя задача - помогать пользователям с вопросами о продуктивности, управлении задачами и использовании системы.

Отвечай кратко, по делу и дружелюбно. Используй эмодзи для наглядности."""


def extract_json_object(text: str) -> str | None:
    """Найти первый сбалансированный JSON объект в тексте.

    Скобки внутри строковых литералов не учитываются.

    Args:
        text: Ответ модели (может содержать текст вокруг JSON).

    Returns:
        Подстрока {...} или None.

    """
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]

    return None


def parse_intent_payload(response: str) -> TaskIntent:
    """Разобрать ответ модели в TaskIntent.

    Args:
        response: Текст ответа модели.

    Returns:
        TaskIntent; при любой ошибке разбора - намерение "не задача".

    """
    candidate = extract_json_object(response)
    if candidate is None:
        return TaskIntent(is_task_creation=False)

    try:
        payload = orjson.loads(candidate)
        if not isinstance(payload, dict):
            return TaskIntent(is_task_creation=False)
        return TaskIntent.model_validate(payload)
    except (orjson.JSONDecodeError, PydanticValidationError) as e:
        logger.warning("Не удалось разобрать ответ модели", error=str(e), candidate=candidate[:200])
        return TaskIntent(is_task_creation=False)


class IntentExtractor:
    """Извлечение намерений и ответы на вопросы."""

    def __init__(self, client: GigaChatClient) -> None:
        """Инициализировать extractor.

        Args:
            client: Клиент GigaChat.

        """
        self.client = client

    async def parse_task_intent(self, text: str) -> TaskIntent:
        """Определить, хочет ли пользователь создать задачу.

        Никогда не выбрасывает исключений: ошибки запроса и разбора
        дают TaskIntent(is_task_creation=False).

        Args:
            text: Сообщение пользователя.

        Returns:
            Извлечённое намерение.

        """
        messages = [
            ChatMessage(role="system", content=INTENT_SYSTEM_PROMPT),
            ChatMessage(role="user", content=text),
        ]

        try:
            response = await self.client.chat(messages, temperature=INTENT_TEMPERATURE)
        except AppException as e:
            logger.warning("Ошибка определения намерения", error_code=e.code, error=e.message)
            return TaskIntent(is_task_creation=False)

        intent = parse_intent_payload(response)
        logger.info(
            "Намерение определено",
            is_task_creation=intent.is_task_creation,
            has_title=bool(intent.title),
            priority=intent.priority.value if intent.priority else None,
            deadline_text=intent.deadline_text,
        )
        return intent

    async def answer_question(self, text: str, context: str | None = None) -> str:
        """Ответить на вопрос пользователя.

        Args:
            text: Вопрос.
            context: Контекст пользователя (например, число активных задач).

        Returns:
            Текст ответа модели.

        Raises:
            AuthError: Если выпустить токен не удалось.
            ServiceError: При ошибке запроса.

        """
        system_prompt = ASSISTANT_SYSTEM_PROMPT
        if context:
            system_prompt += f"\n\nКонтекст пользователя:\n{context}"

        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=text),
        ]
        return await self.client.chat(messages)
