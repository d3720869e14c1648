"""Схемы webhook API.

Pydantic модели входящих обновлений платформы MAX и ответов сервиса.
Из обновления извлекаются только поля, нужные боту; остальное игнорируется.
"""

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from src.core.enums import HealthStatus
from src.core.models import Attachment, InboundCallback, InboundMessage
from src.shared.errors import InvalidUpdateError


def from_millis(value: int | None) -> datetime | None:
    """Unix время в миллисекундах -> datetime UTC."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class MaxModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class MaxUser(MaxModel):
    user_id: int
    name: str | None = None


class MaxAttachmentPayload(MaxModel):
    url: str | None = None


class MaxAttachment(MaxModel):
    type: str
    payload: MaxAttachmentPayload | None = None


class MaxMessageBody(MaxModel):
    mid: str | None = None
    text: str | None = None
    attachments: list[MaxAttachment] | None = None


class MaxMessage(MaxModel):
    sender: MaxUser | None = None
    body: MaxMessageBody = Field(default_factory=MaxMessageBody)
    timestamp: int | None = None


class MaxCallback(MaxModel):
    callback_id: str
    payload: str | None = None
    user: MaxUser
    timestamp: int | None = None


class Update(MaxModel):
    """Обновление Bot API.

    POST /webhook
    """

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "examples": [
                {
                    "update_type": "message_created",
                    "timestamp": 1735689600000,
                    "message": {
                        "sender": {"user_id": 42, "name": "Иван"},
                        "timestamp": 1735689600000,
                        "body": {"mid": "mid.1", "text": "/start"},
                    },
                },
                {
                    "update_type": "message_callback",
                    "timestamp": 1735689600000,
                    "callback": {
                        "callback_id": "cb.1",
                        "payload": "priority:high",
                        "user": {"user_id": 42},
                    },
                },
            ]
        },
    )

    update_type: str = Field(description="Тип обновления")
    timestamp: int | None = Field(default=None, description="Время события (мс)")
    message: MaxMessage | None = None
    callback: MaxCallback | None = None

    def to_message(self) -> InboundMessage:
        """Преобразовать message_created во входящее сообщение.

        Raises:
            InvalidUpdateError: Если в обновлении нет сообщения или отправителя.

        """
        if self.message is None or self.message.sender is None:
            raise InvalidUpdateError(message="message_created без отправителя")

        body = self.message.body
        return InboundMessage(
            user_id=self.message.sender.user_id,
            text=body.text,
            attachments=[
                Attachment(type=item.type, url=item.payload.url if item.payload else None)
                for item in body.attachments or []
            ],
            created_at=from_millis(self.message.timestamp or self.timestamp),
        )

    def to_callback(self) -> InboundCallback:
        """Преобразовать message_callback в нажатие кнопки.

        Raises:
            InvalidUpdateError: Если в обновлении нет callback.

        """
        if self.callback is None:
            raise InvalidUpdateError(message="message_callback без callback")

        return InboundCallback(
            callback_id=self.callback.callback_id,
            user_id=self.callback.user.user_id,
            payload=self.callback.payload or "",
            created_at=from_millis(self.callback.timestamp or self.timestamp),
        )


class WebhookResponse(BaseModel):
    ok: Literal[True] = True


class HealthResponse(BaseModel):
    """Состояние сервиса."""

    status: HealthStatus
    service: str
    environment: str
    features: dict[str, bool]
    pending_events: int = 0
    details: dict[str, Any] = Field(default_factory=dict)
