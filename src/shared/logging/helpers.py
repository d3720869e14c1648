"""Helper функции для структурированного логирования.

Предоставляет специализированные функции для логирования:
- Вызовов внешних AI-сервисов (GigaChat, SaluteSpeech)
- Ошибок внешних сервисов
- Времени выполнения этапов обработки
"""

import time
from typing import Any

from loguru import logger

SENSITIVE_KEYS = {
    "password",
    "pwd",
    "api_key",
    "apikey",
    "secret",
    "token",
    "auth",
    "authorization",
    "credentials",
    "access_token",
}

PREVIEW_LENGTH = 200


def sanitize_credentials(data: dict[str, Any]) -> dict[str, Any]:
    """Удалить credentials (ключи, токены) из словаря.

    Рекурсивно проходит по словарю и заменяет чувствительные поля на '***'.

    Args:
        data: Словарь с данными

    Returns:
        Новый словарь с замаскированными credentials

    Example:
        >>> sanitize_credentials({"scope": "GIGACHAT_API_PERS", "auth_key": "secret"})
        {'scope': 'GIGACHAT_API_PERS', 'auth_key': '***'}

    """
    if not isinstance(data, dict):
        return data

    sanitized: dict[str, Any] = {}
    for key, value in data.items():
        if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS):
            sanitized[key] = "***"
        elif isinstance(value, dict):
            sanitized[key] = sanitize_credentials(value)
        elif isinstance(value, list):
            sanitized[key] = [sanitize_credentials(item) if isinstance(item, dict) else item for item in value]
        else:
            sanitized[key] = value

    return sanitized


def preview(text: str | None, limit: int = PREVIEW_LENGTH) -> str | None:
    """Обрезать текст для лога.

    Args:
        text: Исходный текст
        limit: Максимальная длина

    Returns:
        Текст не длиннее limit символов (с многоточием, если обрезан)

    """
    if text is None:
        return None
    return text[:limit] + "..." if len(text) > limit else text


def log_service_call(
    service: str,
    operation: str,
    latency_ms: float,
    params: dict[str, Any] | None = None,
    response: str | None = None,
    user_id: int | None = None,
) -> None:
    """Логировать успешный вызов внешнего AI-сервиса.

    Args:
        service: Имя сервиса (gigachat, salute_speech)
        operation: Операция (chat, recognize, token)
        latency_ms: Время вызова в миллисекундах
        params: Параметры запроса (temperature, max_tokens и т.д.)
        response: Ответ сервиса (логируется превью)
        user_id: ID пользователя для корреляции

    """
    from src.core.config import settings

    log_data: dict[str, Any] = {
        "event": "service_call",
        "service": service,
        "operation": operation,
        "latency_ms": round(latency_ms, 2),
        "user_id": user_id,
    }

    if params:
        log_data["params"] = sanitize_credentials(params)

    # Текст пользователя пишем только вне prod
    if response and settings.environment != "prod":
        log_data["response_preview"] = preview(response)

    logger.info(f"Service call completed: {service}/{operation}", **log_data)


def log_service_error(
    service: str,
    operation: str,
    error: Exception,
    context: dict[str, Any] | None = None,
) -> None:
    """Логировать ошибку внешнего сервиса с контекстом.

    Args:
        service: Имя сервиса (gigachat, salute_speech, max)
        operation: Операция которая завершилась ошибкой (token, chat, recognize)
        error: Исключение
        context: Дополнительный контекст (status, url и т.д.)

    Example:
        >>> log_service_error(
        ...     service="gigachat",
        ...     operation="token",
        ...     error=AuthError("gigachat", "HTTP 401"),
        ...     context={"status": 401},
        ... )

    """
    log_data: dict[str, Any] = {
        "event": "service_error",
        "service": service,
        "operation": operation,
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        log_data["context"] = sanitize_credentials(context)

    logger.error(f"Service error: {service}/{operation}", **log_data)


class LogExecutionTime:
    """Context manager для логирования времени выполнения операции.

    Example:
        >>> with LogExecutionTime("transcode", user_id=42):
        ...     await transcode(src, dst)
        # Логирует: "Operation completed: transcode (123.45ms)"

    """

    def __init__(self, operation: str, **extra_fields: Any) -> None:
        """Инициализировать context manager.

        Args:
            operation: Название операции
            **extra_fields: Дополнительные поля для логирования

        """
        self.operation = operation
        self.extra_fields = extra_fields
        self.start_time = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "LogExecutionTime":
        """Начать измерение времени."""
        self.start_time = time.perf_counter()
        logger.debug(f"Operation started: {self.operation}", **self.extra_fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Завершить измерение и залогировать результат."""
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        log_data = {
            "operation": self.operation,
            "latency_ms": round(self.elapsed_ms, 2),
            **self.extra_fields,
        }

        if exc_type is not None:
            logger.warning(
                f"Operation failed: {self.operation} ({self.elapsed_ms:.2f}ms)",
                error_type=exc_type.__name__,
                error_message=str(exc_val),
                **log_data,
            )
        else:
            logger.info(
                f"Operation completed: {self.operation} ({self.elapsed_ms:.2f}ms)",
                **log_data,
            )
