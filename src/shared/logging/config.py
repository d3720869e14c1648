"""Logging configuration.

Настройка логирования через Loguru.
"""

import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

from src.core.config import settings
from src.shared.errors.context import trace_id_var
from src.shared.logging.formatters import json_formatter

if TYPE_CHECKING:
    from loguru import Logger


class InterceptHandler(logging.Handler):
    """Обработчик для перехвата логов стандартной библиотеки logging."""

    def emit(self, record: logging.LogRecord) -> None:
        """Перехват и отправка логов в Loguru.

        Args:
            record: Запись лога из стандартного logging.

        """
        # Получаем уровень логирования
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Получаем глубину стека
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level,
            record.getMessage(),
        )


def trace_id_patcher(record: dict) -> None:
    """Добавить trace_id текущего события в запись лога.

    Args:
        record: Запись лога.

    """
    record["extra"]["trace_id"] = trace_id_var.get() or "no-trace"


def setup_logger() -> None:
    """Настроить логирование приложения."""
    # Удаляем стандартный обработчик Loguru
    logger.remove()
    logger.configure(patcher=trace_id_patcher)

    text_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "trace_id=<yellow>{extra[trace_id]}</yellow> | "
        "<level>{message}</level>"
    )

    if settings.log.format == "json":
        logger.add(
            sys.stdout,
            format=json_formatter,
            level=settings.log.level,
            backtrace=True,
            diagnose=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=text_format,
            level=settings.log.level,
            colorize=True,
            backtrace=True,
            diagnose=settings.debug,
        )

    if settings.log.file_path:
        log_path = Path(settings.log.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Файл всегда в JSON
        logger.add(
            settings.log.file_path,
            format=json_formatter,
            level=settings.log.level,
            rotation=settings.log.rotation,
            retention=settings.log.retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    configure_third_party_loggers()

    logger.info(
        "Logger initialized",
        level=settings.log.level,
        format=settings.log.format,
        file=settings.log.file_path,
    )


def configure_third_party_loggers() -> None:
    """Настроить логирование сторонних библиотек."""
    loggers_to_intercept = [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "fastapi",
        "httpx",
        "httpcore",
        "asyncpg",
    ]

    for logger_name in loggers_to_intercept:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False

    # httpx на INFO логирует каждый запрос вместе с URL (включая query с токенами)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> "Logger":
    """Получить настроенный logger instance.

    Args:
        name: Имя логгера (обычно __name__ модуля)

    Returns:
        Настроенный Loguru logger

    """
    if name:
        return logger.bind(name=name)
    return logger
