"""Доменные модели MaxFlow Assistant.

Сессия диалога, задача, намерение, входящие события и ответ бота.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.core.enums import DialogueStep, Priority


def utcnow() -> datetime:
    """Текущее время в UTC."""
    return datetime.now(timezone.utc)


# ==================== Dialogue ====================


class Draft(BaseModel):
    """Поля задачи, накопленные в ходе диалога."""

    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    deadline_text: str | None = None


class Session(BaseModel):
    """Сессия пошагового создания задачи (одна на пользователя)."""

    user_id: int
    step: DialogueStep = DialogueStep.TITLE
    draft: Draft = Field(default_factory=Draft)
    updated_at: datetime = Field(default_factory=utcnow)


# ==================== AI ====================


class TaskIntent(BaseModel):
    """Намерение, извлечённое моделью из свободного текста.

    Поля приходят в camelCase (isTaskCreation, deadline) от модели,
    в коде используются snake_case имена.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    is_task_creation: bool = Field(default=False, alias="isTaskCreation")
    title: str | None = None
    description: str | None = None
    priority: Priority | None = None
    deadline_text: str | None = Field(default=None, alias="deadline")

    @field_validator("priority", mode="before")
    @classmethod
    def drop_unknown_priority(cls, value: Any) -> Any:
        """Неизвестный приоритет считается отсутствующим."""
        if isinstance(value, str):
            value = value.strip().lower()
            return value if value in {p.value for p in Priority} else None
        return value if isinstance(value, Priority) else None

    @field_validator("title", "description", "deadline_text", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        """Пустые строки считаются отсутствующими."""
        if value is None:
            return None
        if not isinstance(value, str):
            value = str(value)
        value = value.strip()
        return value or None

    @property
    def creates_task(self) -> bool:
        """Можно создавать задачу: есть намерение и название."""
        return self.is_task_creation and bool(self.title)


# ==================== Tasks ====================


class Task(BaseModel):
    """Задача пользователя."""

    id: str
    user_id: int
    title: str
    description: str = ""
    deadline: datetime | None = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    completed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)

    def is_overdue(self, now: datetime | None = None) -> bool:
        """Просрочена ли задача."""
        if self.deadline is None or self.completed:
            return False
        return self.deadline < (now or utcnow())


class PriorityBreakdown(BaseModel):
    """Количество задач по приоритетам."""

    high: int = 0
    medium: int = 0
    low: int = 0


class TaskStats(BaseModel):
    """Статистика задач за окно в N дней."""

    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    completed_today: int = 0
    completed_this_week: int = 0
    by_priority: PriorityBreakdown = Field(default_factory=PriorityBreakdown)


# ==================== Inbound events ====================


class Attachment(BaseModel):
    """Вложение входящего сообщения."""

    type: str
    url: str | None = None


class InboundMessage(BaseModel):
    """Входящее сообщение пользователя."""

    user_id: int
    text: str | None = None
    attachments: list[Attachment] = Field(default_factory=list)
    created_at: datetime | None = None

    @property
    def clean_text(self) -> str:
        """Текст без пробелов по краям (пустая строка, если текста нет)."""
        return (self.text or "").strip()

    @property
    def audio(self) -> Attachment | None:
        """Первое аудио вложение (голосовое сообщение)."""
        return next((a for a in self.attachments if a.type == "audio"), None)


class InboundCallback(BaseModel):
    """Нажатие inline кнопки."""

    callback_id: str
    user_id: int
    payload: str
    created_at: datetime | None = None


# ==================== Outbound ====================


class Button(BaseModel):
    """Callback кнопка."""

    text: str
    payload: str


Keyboard = list[list[Button]]


class Reply(BaseModel):
    """Ответ бота на событие.

    Для сообщений отправляется text с клавиатурой; для callback дополнительно
    может быть toast (всплывающее уведомление).
    """

    text: str | None = None
    keyboard: Keyboard | None = None
    toast: str | None = None
