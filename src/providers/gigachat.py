"""GigaChat client.

Chat completions поверх TokenGatedClient.
"""

from typing import Literal

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.core.config import GigaChatSettings
from src.core.constants import COMPLETION_CHOICES
from src.providers.base import TokenGatedClient
from src.shared.errors import ServiceError
from src.shared.logging import LogExecutionTime, log_service_call

SERVICE_NAME = "gigachat"


class ChatMessage(BaseModel):
    """Сообщение диалога с моделью."""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Тело запроса chat completions."""

    model: str
    messages: list[ChatMessage]
    temperature: float
    max_tokens: int
    n: int = COMPLETION_CHOICES


class ChatChoice(BaseModel):
    """Вариант ответа модели."""

    message: ChatMessage


class ChatResponse(BaseModel):
    """Ответ chat completions (нужные поля)."""

    choices: list[ChatChoice] = Field(min_length=1)


class GigaChatClient(TokenGatedClient):
    """Клиент GigaChat API."""

    def __init__(self, config: GigaChatSettings, http_client: httpx.AsyncClient, **kwargs) -> None:
        """Инициализировать клиент.

        Args:
            config: Настройки GigaChat (auth_key обязателен).
            http_client: Общий httpx.AsyncClient.
            **kwargs: Параметры TokenGatedClient (clock, validity_seconds...).

        """
        super().__init__(
            service=SERVICE_NAME,
            auth_url=config.auth_url,
            scope=config.scope,
            auth_key=config.auth_key or "",
            http_client=http_client,
            **kwargs,
        )
        self.config = config

    async def chat(
        self,
        messages: list[ChatMessage],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """Выполнить chat completion.

        Args:
            messages: Сообщения диалога.
            temperature: Температура (по умолчанию из настроек).
            max_tokens: Лимит токенов ответа (по умолчанию из настроек).

        Returns:
            Текст choices[0].message.content.

        Raises:
            AuthError: Если выпустить токен не удалось.
            ServiceError: При ошибке запроса или некорректном ответе.

        """
        request = ChatRequest(
            model=self.config.model,
            messages=messages,
            temperature=self.config.temperature if temperature is None else temperature,
            max_tokens=max_tokens or self.config.max_tokens,
        )

        with LogExecutionTime("gigachat_chat", model=request.model) as timer:
            response = await self.authorized_request(
                "POST",
                self.config.api_url,
                json=request.model_dump(),
                headers={"Accept": "application/json"},
            )
        self.raise_for_status(response, "chat")

        try:
            parsed = ChatResponse.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise ServiceError(SERVICE_NAME, "некорректный ответ chat completions") from e

        content = parsed.choices[0].message.content
        log_service_call(
            SERVICE_NAME,
            "chat",
            timer.elapsed_ms,
            params={"temperature": request.temperature, "max_tokens": request.max_tokens},
            response=content,
        )
        return content
