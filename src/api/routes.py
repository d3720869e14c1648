"""Webhook и health endpoints."""

from fastapi import APIRouter, Depends, status
from loguru import logger

from src.api.schemas import HealthResponse, Update, WebhookResponse
from src.core.dependencies import RuntimeDep, SettingsDep, verify_webhook_secret
from src.core.enums import HealthStatus

router = APIRouter()


@router.post(
    "/webhook",
    response_model=WebhookResponse,
    status_code=status.HTTP_200_OK,
    summary="Приём обновлений Bot API",
    description="Принимает событие, запускает его обработку и сразу отвечает",
    dependencies=[Depends(verify_webhook_secret)],
    tags=["Bot"],
)
async def webhook(update: Update, runtime: RuntimeDep) -> WebhookResponse:
    """Принять обновление платформы.

    Args:
        update: Обновление Bot API.
        runtime: Компоненты бота.

    Returns:
        Подтверждение приёма.

    Raises:
        InvalidUpdateError: Если обновление не содержит нужных полей.

    """
    router_ = runtime.router

    if update.update_type == "message_created":
        message = update.to_message()
        runtime.dispatcher.spawn(router_.handle_message(message), name=f"message-{message.user_id}")
    elif update.update_type == "message_callback":
        callback = update.to_callback()
        runtime.dispatcher.spawn(router_.handle_callback(callback), name=f"callback-{callback.user_id}")
    else:
        logger.debug("Обновление пропущено", update_type=update.update_type)

    return WebhookResponse()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Статус сервиса и доступность AI и голосовых функций",
    tags=["Health"],
)
async def health(runtime: RuntimeDep, config: SettingsDep) -> HealthResponse:
    """Проверка состояния сервиса."""
    features = dict(runtime.features)
    return HealthResponse(
        status=HealthStatus.OK if all(features.values()) else HealthStatus.DEGRADED,
        service=config.app_name,
        environment=config.environment,
        features=features,
        pending_events=runtime.dispatcher.pending,
        details={"focus_timers": len(runtime.focus.active_users)},
    )
