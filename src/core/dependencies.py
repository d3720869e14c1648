"""Dependencies.

Dependency Injection для FastAPI: компоненты бота берутся из app.state.
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from src.core.config import Settings, settings
from src.core.constants import WEBHOOK_SECRET_HEADER
from src.services.runtime import BotRuntime
from src.shared.errors import StateError, WebhookForbiddenError


def get_settings() -> Settings:
    """Предоставляет настройки приложения.

    Returns:
        Settings instance.

    """
    return settings


def get_runtime(request: Request) -> BotRuntime:
    """Предоставляет собранные компоненты бота.

    Raises:
        StateError: Если приложение ещё не запущено.

    """
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise StateError(message="Компоненты бота не инициализированы")
    return runtime


SettingsDep = Annotated[Settings, Depends(get_settings)]
RuntimeDep = Annotated[BotRuntime, Depends(get_runtime)]


def verify_webhook_secret(
    config: SettingsDep,
    secret: Annotated[str | None, Header(alias=WEBHOOK_SECRET_HEADER)] = None,
) -> None:
    """Проверить секрет webhook, если он задан в настройках.

    Raises:
        WebhookForbiddenError: Если секрет не совпадает.

    """
    expected = config.bot.webhook_secret
    if expected and secret != expected:
        raise WebhookForbiddenError(message="Неверный секрет webhook")
