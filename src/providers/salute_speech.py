"""SaluteSpeech client.

Синхронное распознавание речи поверх TokenGatedClient.
"""

import httpx
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from src.core.config import SaluteSpeechSettings
from src.core.constants import PCM_CONTENT_TYPE, SPEECH_STATUS_OK
from src.providers.base import TokenGatedClient
from src.shared.errors import ServiceError
from src.shared.logging import LogExecutionTime, log_service_call

SERVICE_NAME = "salute_speech"


class RecognitionResponse(BaseModel):
    """Ответ распознавания: статус и варианты расшифровки."""

    status: int
    result: list[str] = Field(default_factory=list)


class SaluteSpeechClient(TokenGatedClient):
    """Клиент SaluteSpeech REST API."""

    def __init__(self, config: SaluteSpeechSettings, http_client: httpx.AsyncClient, **kwargs) -> None:
        """Инициализировать клиент.

        Args:
            config: Настройки SaluteSpeech (auth_key обязателен).
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

    async def recognize(self, pcm: bytes) -> list[str]:
        """Распознать PCM аудио (16 кГц, 16 бит, моно).

        Args:
            pcm: Сырые PCM данные.

        Returns:
            Варианты расшифровки в порядке ответа сервиса.

        Raises:
            AuthError: Если выпустить токен не удалось.
            ServiceError: При ошибке запроса, некорректном ответе или status != 200.

        """
        with LogExecutionTime("salute_speech_recognize", audio_bytes=len(pcm)) as timer:
            response = await self.authorized_request(
                "POST",
                self.config.api_url,
                content=pcm,
                headers={"Content-Type": PCM_CONTENT_TYPE},
            )
        self.raise_for_status(response, "recognize")

        try:
            parsed = RecognitionResponse.model_validate_json(response.content)
        except PydanticValidationError as e:
            raise ServiceError(SERVICE_NAME, "некорректный ответ распознавания") from e

        if parsed.status != SPEECH_STATUS_OK:
            raise ServiceError(SERVICE_NAME, f"status {parsed.status}", status=parsed.status)

        log_service_call(SERVICE_NAME, "recognize", timer.elapsed_ms, params={"candidates": len(parsed.result)})
        return parsed.result
