"""Error handling decorators.

Декораторы для обработки ошибок.
"""

import functools
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from loguru import logger

from src.shared.errors.base import AppException
from src.shared.errors.mapping import map_exception

T = TypeVar("T")


def safe_deco(source: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Декоратор для безопасного выполнения корутин инфраструктурного слоя.

    Перехватывает технические исключения и преобразует их в доменные.

    Args:
        source: Имя хранилища или сервиса для логов и деталей ошибки.

    Returns:
        Декоратор.

    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return await func(*args, **kwargs)
            except AppException:
                # Пробрасываем доменные исключения как есть
                raise
            except Exception as e:
                logger.exception(
                    f"Technical error in {func.__name__}",
                    source=source,
                    exception_type=type(e).__name__,
                    exception_message=str(e),
                )
                raise map_exception(e, source) from e

        return wrapper

    return decorator
