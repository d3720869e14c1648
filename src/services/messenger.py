"""Messenger для MaxFlow Assistant.

Отправка сообщений и ответов на callback через Bot API платформы MAX.
"""

from typing import Any, Protocol, runtime_checkable

import httpx
from loguru import logger

from src.core.config import BotSettings
from src.core.models import Keyboard
from src.shared.errors import map_exception
from src.shared.logging import log_service_error

SERVICE_NAME = "max"


@runtime_checkable
class Messenger(Protocol):
    """Интерфейс отправки сообщений пользователю."""

    async def send_text(self, user_id: int, text: str, keyboard: Keyboard | None = None) -> None:
        """Отправить сообщение пользователю."""
        ...

    async def answer_callback(
        self,
        callback_id: str,
        text: str | None = None,
        keyboard: Keyboard | None = None,
        toast: str | None = None,
    ) -> None:
        """Ответить на нажатие кнопки (сообщение и/или уведомление)."""
        ...


def keyboard_attachment(keyboard: Keyboard) -> dict[str, Any]:
    """Inline клавиатура в формате вложения Bot API.

    Args:
        keyboard: Ряды кнопок.

    Returns:
        Вложение типа inline_keyboard.

    """
    return {
        "type": "inline_keyboard",
        "payload": {
            "buttons": [
                [{"type": "callback", "text": button.text, "payload": button.payload} for button in row]
                for row in keyboard
            ],
        },
    }


def message_body(text: str, keyboard: Keyboard | None = None) -> dict[str, Any]:
    """Тело нового сообщения (markdown, опционально с клавиатурой)."""
    body: dict[str, Any] = {"text": text, "format": "markdown"}
    if keyboard:
        body["attachments"] = [keyboard_attachment(keyboard)]
    return body


class MaxMessenger:
    """Клиент Bot API платформы MAX."""

    def __init__(self, config: BotSettings, http_client: httpx.AsyncClient) -> None:
        """Инициализировать клиент.

        Args:
            config: Настройки бота (token, api_url).
            http_client: Общий httpx.AsyncClient.

        """
        self.base_url = config.api_url.rstrip("/")
        self._token = config.token or ""
        self._http = http_client

    async def _post(self, path: str, params: dict[str, Any], body: dict[str, Any]) -> None:
        try:
            response = await self._http.post(
                f"{self.base_url}{path}",
                params=params,
                json=body,
                headers={"Authorization": self._token},
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            log_service_error(SERVICE_NAME, path, e, context=params)
            raise map_exception(e, SERVICE_NAME) from e

    async def send_text(self, user_id: int, text: str, keyboard: Keyboard | None = None) -> None:
        """Отправить сообщение пользователю.

        Raises:
            ServiceError: Если Bot API вернул ошибку.

        """
        await self._post("/messages", {"user_id": user_id}, message_body(text, keyboard))
        logger.debug("Сообщение отправлено", user_id=user_id, has_keyboard=bool(keyboard))

    async def answer_callback(
        self,
        callback_id: str,
        text: str | None = None,
        keyboard: Keyboard | None = None,
        toast: str | None = None,
    ) -> None:
        """Ответить на callback.

        Raises:
            ServiceError: Если Bot API вернул ошибку.

        """
        body: dict[str, Any] = {}
        if text is not None:
            body["message"] = message_body(text, keyboard)
        if toast is not None:
            body["notification"] = toast

        await self._post("/answers", {"callback_id": callback_id}, body)
        logger.debug("Callback обработан", callback_id=callback_id, has_message=text is not None)
