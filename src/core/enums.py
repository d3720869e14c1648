"""Enums для MaxFlow Assistant.

Централизованное хранилище всех enum'ов проекта.
"""

from enum import Enum


class Priority(str, Enum):
    """Приоритет задачи."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DialogueStep(str, Enum):
    """Шаг пошагового создания задачи."""

    TITLE = "title"
    DESCRIPTION = "description"
    PRIORITY = "priority"
    DEADLINE = "deadline"
    DEADLINE_HOURS = "deadline_hours"
    DEADLINE_DATE = "deadline_date"


class DeadlineChoice(str, Enum):
    """Варианты кнопок выбора дедлайна."""

    TODAY = "today"
    TOMORROW = "tomorrow"
    THREE_DAYS = "3days"
    WEEK = "week"
    NONE = "none"
    CUSTOM_HOURS = "custom_hours"
    CUSTOM_DATE = "custom_date"


class MessageSource(str, Enum):
    """Откуда пришёл текст для AI обработки."""

    TEXT = "text"
    VOICE = "voice"


class RouteKind(str, Enum):
    """Тип callback маршрута (кнопки)."""

    MAIN_MENU = "main_menu"
    HELP = "help"
    TASK_CREATE = "task_create"
    TASK_CANCEL = "task_cancel"
    PRIORITY = "priority"
    DEADLINE = "deadline"
    TASKS_LIST = "tasks_list"
    TASK_VIEW = "task_view"
    TASK_COMPLETE = "task_complete"
    TASK_DELETE = "task_delete"
    STATS_SHOW = "stats_show"
    STATS_CLEAR = "stats_clear"
    FOCUS_START = "focus_start"
    AI_CREATE_TASK = "ai_create_task"
    AI_ASK = "ai_ask"
    UNKNOWN = "unknown"


class HealthStatus(str, Enum):
    """Статус здоровья сервиса."""

    OK = "ok"
    DEGRADED = "degraded"
