"""Базовый клиент внешних сервисов Сбера с выпуском токена.

GigaChat и SaluteSpeech авторизуются одинаково: по ключу (Basic) выпускается
bearer токен на 30 минут. TokenGatedClient кеширует токен и прозрачно
обновляет его перед каждым запросом.
"""

import asyncio
import time
import uuid
from collections.abc import Callable
from typing import Any

import httpx
from loguru import logger
from pydantic import BaseModel

from src.core.config import HttpSettings
from src.core.constants import RQUID_HEADER, TOKEN_REFRESH_SKEW_SECONDS, TOKEN_VALIDITY_SECONDS
from src.shared.errors import AuthError, ServiceError, map_exception
from src.shared.logging import LogExecutionTime, log_service_error


def build_http_client(http: HttpSettings) -> httpx.AsyncClient:
    """Создать HTTP клиент с ограниченными таймаутами.

    Args:
        http: Настройки HTTP.

    Returns:
        Настроенный httpx.AsyncClient.

    """
    return httpx.AsyncClient(
        timeout=httpx.Timeout(http.timeout, connect=http.connect_timeout),
        verify=http.verify_ssl,
    )


class CachedToken(BaseModel):
    """Выпущенный bearer токен."""

    value: str
    expires_at: float

    def is_usable(self, now: float, skew: float = TOKEN_REFRESH_SKEW_SECONDS) -> bool:
        """Токен можно использовать, пока до истечения больше skew секунд."""
        return now < self.expires_at - skew


class TokenGatedClient:
    """HTTP клиент, получающий bearer токен перед каждым запросом.

    Обновление токена single-flight: конкурентные вызовы во время выпуска
    ждут один запрос к auth endpoint.
    """

    def __init__(
        self,
        service: str,
        auth_url: str,
        scope: str,
        auth_key: str,
        http_client: httpx.AsyncClient,
        clock: Callable[[], float] = time.time,
        validity_seconds: float = TOKEN_VALIDITY_SECONDS,
        skew_seconds: float = TOKEN_REFRESH_SKEW_SECONDS,
    ) -> None:
        """Инициализировать клиент.

        Args:
            service: Имя сервиса для логов и ошибок.
            auth_url: Endpoint выпуска токена.
            scope: OAuth scope сервиса.
            auth_key: Авторизационный ключ (Basic).
            http_client: Общий httpx.AsyncClient.
            clock: Источник текущего времени (секунды).
            validity_seconds: Срок жизни токена.
            skew_seconds: Запас до истечения, после которого токен обновляется.

        """
        self.service = service
        self._auth_url = auth_url
        self._scope = scope
        self._auth_key = auth_key
        self._http = http_client
        self._clock = clock
        self._validity = validity_seconds
        self._skew = skew_seconds

        self._token: CachedToken | None = None
        self._lock = asyncio.Lock()

    @property
    def cached_token(self) -> CachedToken | None:
        """Текущий закешированный токен (если есть)."""
        return self._token

    def _usable(self) -> str | None:
        token = self._token
        if token is not None and token.is_usable(self._clock(), self._skew):
            return token.value
        return None

    async def get_token(self) -> str:
        """Получить действующий bearer токен.

        Returns:
            Значение токена.

        Raises:
            AuthError: Если выпустить токен не удалось.

        """
        value = self._usable()
        if value is not None:
            return value

        async with self._lock:
            # Пока ждали блокировку, токен мог выпустить другой вызов
            value = self._usable()
            if value is not None:
                return value

            self._token = await self._issue()
            return self._token.value

    def invalidate(self) -> None:
        """Сбросить закешированный токен."""
        if self._token is not None:
            logger.info("Токен сброшен", service=self.service)
        self._token = None

    async def _issue(self) -> CachedToken:
        """Выпустить новый токен.

        Returns:
            Новый CachedToken со сроком жизни validity_seconds.

        Raises:
            AuthError: При ошибке транспорта, не-2xx ответе или отсутствии access_token.

        """
        rq_uid = str(uuid.uuid4())
        headers = {
            "Authorization": f"Basic {self._auth_key}",
            RQUID_HEADER: rq_uid,
            "Accept": "application/json",
        }

        try:
            with LogExecutionTime("token_issue", service=self.service, rq_uid=rq_uid):
                response = await self._http.post(
                    self._auth_url,
                    headers=headers,
                    data={"scope": self._scope},
                )
        except httpx.HTTPError as e:
            log_service_error(self.service, "token", e, context={"url": self._auth_url})
            raise AuthError(self.service, f"transport error: {type(e).__name__}") from e

        if response.is_error:
            error = AuthError(self.service, f"HTTP {response.status_code}")
            log_service_error(self.service, "token", error, context={"status": response.status_code})
            raise error

        try:
            payload = response.json()
        except ValueError as e:
            raise AuthError(self.service, "ответ не является JSON") from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            error = AuthError(self.service, "в ответе нет access_token")
            log_service_error(self.service, "token", error)
            raise error

        logger.info("Токен выпущен", service=self.service, valid_seconds=self._validity)
        return CachedToken(value=access_token, expires_at=self._clock() + self._validity)

    async def authorized_request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Выполнить запрос с bearer токеном.

        После ответа 401 токен сбрасывается, следующий вызов выпустит новый.

        Args:
            method: HTTP метод.
            url: URL запроса.
            **kwargs: Аргументы httpx (json, content, headers...).

        Returns:
            Ответ сервиса (статус не проверяется).

        Raises:
            AuthError: Если выпустить токен не удалось.
            ServiceError: При ошибке транспорта.

        """
        token = await self.get_token()
        headers = {**kwargs.pop("headers", {}), "Authorization": f"Bearer {token}"}

        try:
            response = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            log_service_error(self.service, "request", e, context={"url": url})
            raise map_exception(e, self.service) from e

        if response.status_code == httpx.codes.UNAUTHORIZED:
            self.invalidate()

        return response

    def raise_for_status(self, response: httpx.Response, operation: str) -> None:
        """Преобразовать не-2xx ответ в ServiceError.

        Args:
            response: Ответ сервиса.
            operation: Имя операции для логов.

        Raises:
            ServiceError: Если статус ответа не 2xx.

        """
        if response.is_success:
            return
        error = ServiceError(self.service, f"HTTP {response.status_code}", status=response.status_code)
        log_service_error(
            self.service,
            operation,
            error,
            context={"status": response.status_code, "body": response.text[:200]},
        )
        raise error
