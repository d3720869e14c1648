"""Маппинг инфраструктурных исключений на доменные.

Этот модуль содержит `ExceptionMapper` для преобразования исключений
инфраструктурного слоя (HTTP клиенты, БД, Redis) в доменные исключения.
"""

import asyncpg
import httpx
import redis.exceptions

from src.shared.errors.base import AppException
from src.shared.errors.domain_errors import ServiceError, StorageError


class ExceptionMapper:
    """Маппер для преобразования инфраструктурных исключений в доменные.

    Examples:
        >>> mapper = ExceptionMapper()
        >>> try:
        ...     # Запрос к внешнему сервису
        ...     pass
        ... except Exception as e:
        ...     raise mapper.map(e, source="gigachat") from e
    """

    _STORAGE_ERRORS: tuple[type[Exception], ...] = (
        asyncpg.PostgresError,
        asyncpg.InterfaceError,
        redis.exceptions.RedisError,
        OSError,
    )

    def map(self, exception: Exception, source: str) -> AppException:
        """Преобразует исключение в доменное.

        Args:
            exception: Исходное исключение.
            source: Имя сервиса или хранилища, где произошла ошибка.

        Returns:
            AppException: Доменное исключение.

        """
        # Если уже доменное исключение, возвращаем как есть
        if isinstance(exception, AppException):
            return exception

        if isinstance(exception, httpx.HTTPStatusError):
            return ServiceError(
                source,
                reason=f"HTTP {exception.response.status_code}",
                status=exception.response.status_code,
            )

        if isinstance(exception, httpx.TimeoutException):
            return ServiceError(source, reason="timeout")

        if isinstance(exception, httpx.HTTPError):
            return ServiceError(source, reason=f"{type(exception).__name__}: {exception}")

        if isinstance(exception, self._STORAGE_ERRORS):
            return StorageError(
                message=f"Ошибка хранилища '{source}': {exception}",
                details={
                    "source": source,
                    "original_exception": exception.__class__.__name__,
                },
            )

        return ServiceError(source, reason=f"{type(exception).__name__}: {exception}")


# Глобальный экземпляр маппера
exception_mapper = ExceptionMapper()


def map_exception(exception: Exception, source: str) -> AppException:
    """Утилита для быстрого маппинга исключений.

    Args:
        exception: Исходное исключение.
        source: Имя сервиса или хранилища.

    Returns:
        AppException: Доменное исключение.

    """
    return exception_mapper.map(exception, source)
