"""MaxFlow Assistant - Main Entry Point.

FastAPI приложение, принимающее события бота MAX через webhook.
"""

import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from loguru import logger

from src.api import router as api_router
from src.core.config import settings
from src.services.runtime import BotRuntime, build_runtime
from src.shared.errors import get_trace_id, set_trace_id, setup_exception_handlers
from src.shared.logging import setup_logger

APP_VERSION = "1.0.0"


class TraceContextMiddleware:
    """Middleware для установки trace_id в контекст запроса."""

    def __init__(self, app: Any) -> None:
        """Инициализация middleware.

        Args:
            app: FastAPI приложение.

        """
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        trace_id = headers.get(b"x-trace-id", b"").decode() or str(uuid4())
        set_trace_id(trace_id)

        await self.app(scope, receive, send)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Менеджер жизненного цикла приложения.

    Собирает компоненты бота при запуске (если они не переданы заранее)
    и останавливает их при завершении: таймеры, обработка событий,
    HTTP клиент, пул PostgreSQL, Redis.

    Args:
        app: Экземпляр FastAPI приложения.

    Yields:
        Управление приложением во время его работы.

    """
    logger.info(f"Запуск {settings.app_name}...")
    logger.info("Окружение", environment=settings.environment, debug=settings.debug)

    owned = getattr(app.state, "runtime", None) is None
    if owned:
        app.state.runtime = await build_runtime(settings)

    runtime: BotRuntime = app.state.runtime
    logger.success(f"{settings.app_name} успешно запущен!", **runtime.features)

    try:
        yield
    finally:
        logger.info("Завершение работы приложения...")
        if owned:
            await runtime.close()
            app.state.runtime = None
        logger.success("Завершение работы выполнено")


def create_app(runtime: BotRuntime | None = None) -> FastAPI:
    """Создание и настройка FastAPI приложения.

    Args:
        runtime: Готовые компоненты бота; без них компоненты собираются
            из настроек при запуске.

    Returns:
        Настроенный экземпляр FastAPI приложения.

    """
    setup_logger()

    app = FastAPI(
        title=settings.app_name,
        description="Webhook бота-ассистента задач для мессенджера MAX",
        version=APP_VERSION,
        lifespan=lifespan,
        debug=settings.debug,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    app.state.runtime = runtime

    app.add_middleware(TraceContextMiddleware)

    @app.middleware("http")
    async def timing_middleware(request: Request, call_next: Any) -> Any:
        """Измерить время обработки запроса.

        Args:
            request: Входящий HTTP запрос.
            call_next: Следующий обработчик в цепочке.

        Returns:
            HTTP ответ с заголовками X-Trace-ID и X-Duration-Ms.

        """
        start_time = time.time()
        trace_id = get_trace_id()

        response = await call_next(request)

        duration_ms = round((time.time() - start_time) * 1000, 2)
        response.headers["X-Trace-ID"] = trace_id
        response.headers["X-Duration-Ms"] = str(duration_ms)

        logger.debug(
            f"{request.method} {request.url.path} - {response.status_code}",
            duration_ms=duration_ms,
            status_code=response.status_code,
        )
        return response

    setup_exception_handlers(app)
    app.include_router(api_router)

    return app


def main_uvicorn() -> None:  # pragma: no cover
    """Запуск приложения через Uvicorn."""
    uvicorn.run(
        "src.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
        log_level=settings.log.level.lower(),
        access_log=settings.debug,
        workers=1,
    )


app = create_app()


if __name__ == "__main__":
    main_uvicorn()
