"""Модуль структурированного логирования.

Предоставляет единый интерфейс для логирования во всем приложении:
- trace_id обрабатываемого события в каждой записи
- JSON формат для production structured logging
- Human-readable формат для development
- Маскирование ключей и токенов внешних сервисов

Основное использование:
    >>> from src.shared.logging import setup_logger
    >>> setup_logger()  # Вызвать один раз при старте
    >>> from loguru import logger
    >>> logger.info("Voice received", user_id=42)
"""

from src.shared.logging.config import (
    InterceptHandler,
    configure_third_party_loggers,
    get_logger,
    setup_logger,
)
from src.shared.logging.formatters import json_formatter, sanitize_sensitive_data
from src.shared.logging.helpers import (
    LogExecutionTime,
    log_service_call,
    log_service_error,
    preview,
    sanitize_credentials,
)

__all__ = [
    "InterceptHandler",
    "LogExecutionTime",
    "configure_third_party_loggers",
    "get_logger",
    "json_formatter",
    "log_service_call",
    "log_service_error",
    "preview",
    "sanitize_credentials",
    "sanitize_sensitive_data",
    "setup_logger",
]
