"""Форматтеры логов для Loguru.

Предоставляет форматтеры для структурированного логирования:
- JSON формат для production (structured logging с trace_id)
- Sanitization для чувствительных данных (credentials)
"""

import re
from typing import Any

import orjson

# Паттерны для sanitization чувствительных данных
SENSITIVE_PATTERNS = [
    (re.compile(r'"(password|pwd)"\s*:\s*"[^"]*"', re.IGNORECASE), r'"\1": "***"'),
    (re.compile(r'"(api_key|apikey|secret|token|access_token|auth_key)"\s*:\s*"[^"]*"', re.IGNORECASE), r'"\1": "***"'),
    (re.compile(r"(Basic|Bearer)\s+[A-Za-z0-9._~+/=-]+", re.IGNORECASE), r"\1 ***"),
    (re.compile(r"(password|pwd|api_key|apikey|secret|token|auth)=\S+", re.IGNORECASE), r"\1=***"),
]


def sanitize_sensitive_data(text: str) -> str:
    """Удалить чувствительные данные из строки.

    Заменяет пароли, ключи, токены и заголовки авторизации на '***'.

    Args:
        text: Текст для sanitization

    Returns:
        Текст с замаскированными чувствительными данными

    """
    for pattern, replacement in SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def json_formatter(record: dict[str, Any]) -> str:
    """JSON форматтер для structured logging.

    Loguru ожидает от format-функции шаблон, поэтому готовая JSON строка
    кладётся в extra и подставляется через {extra[serialized]}.

    Args:
        record: Loguru record dictionary

    Returns:
        Шаблон строки лога

    """
    extra = record["extra"]
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    for key, value in extra.items():
        if key != "serialized":
            log_entry[key] = value

    if record["exception"] is not None:
        exception_info = record["exception"]
        log_entry["exception"] = {
            "type": exception_info.type.__name__ if exception_info.type else None,
            "value": str(exception_info.value) if exception_info.value else None,
        }

    json_str = orjson.dumps(log_entry, default=str).decode("utf-8")
    extra["serialized"] = sanitize_sensitive_data(json_str)
    return "{extra[serialized]}\n"
