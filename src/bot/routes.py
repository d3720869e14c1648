"""Callback маршруты.

Payload кнопки разбирается один раз на границе в типизированный CallbackRoute,
обработчики дальше работают с kind и захваченным параметром.
"""

import re

from pydantic import BaseModel

from src.core import constants as c
from src.core.enums import DeadlineChoice, Priority, RouteKind


class CallbackRoute(BaseModel):
    """Разобранный callback: тип маршрута и параметр (ID задачи, приоритет...)."""

    kind: RouteKind
    param: str | None = None
    raw: str = ""

    @property
    def priority(self) -> Priority:
        return Priority(self.param)

    @property
    def deadline(self) -> DeadlineChoice:
        return DeadlineChoice(self.param)


TASK_ID = r"([0-9a-fA-F-]+)"

STATIC_ROUTES: dict[str, RouteKind] = {
    c.CB_MENU_MAIN: RouteKind.MAIN_MENU,
    c.CB_HELP: RouteKind.HELP,
    c.CB_TASK_CREATE: RouteKind.TASK_CREATE,
    c.CB_TASK_CANCEL: RouteKind.TASK_CANCEL,
    c.CB_TASKS_LIST: RouteKind.TASKS_LIST,
    c.CB_STATS_SHOW: RouteKind.STATS_SHOW,
    c.CB_STATS_CLEAR: RouteKind.STATS_CLEAR,
    c.CB_FOCUS_START: RouteKind.FOCUS_START,
    c.CB_AI_CREATE_TASK: RouteKind.AI_CREATE_TASK,
    c.CB_AI_ASK: RouteKind.AI_ASK,
}

PATTERN_ROUTES: list[tuple[re.Pattern[str], RouteKind]] = [
    (
        re.compile(rf"^{re.escape(c.CB_PRIORITY_PREFIX)}({'|'.join(p.value for p in Priority)})$"),
        RouteKind.PRIORITY,
    ),
    (
        re.compile(rf"^{re.escape(c.CB_DEADLINE_PREFIX)}({'|'.join(re.escape(d.value) for d in DeadlineChoice)})$"),
        RouteKind.DEADLINE,
    ),
    (re.compile(rf"^{re.escape(c.CB_TASK_VIEW_PREFIX)}{TASK_ID}$"), RouteKind.TASK_VIEW),
    (re.compile(rf"^{re.escape(c.CB_TASK_COMPLETE_PREFIX)}{TASK_ID}$"), RouteKind.TASK_COMPLETE),
    (re.compile(rf"^{re.escape(c.CB_TASK_DELETE_PREFIX)}{TASK_ID}$"), RouteKind.TASK_DELETE),
]


def decode_callback(payload: str) -> CallbackRoute:
    """Разобрать payload кнопки.

    Args:
        payload: Строка callback данных.

    Returns:
        CallbackRoute; для неизвестного payload - kind UNKNOWN.

    """
    payload = payload.strip()

    kind = STATIC_ROUTES.get(payload)
    if kind is not None:
        return CallbackRoute(kind=kind, raw=payload)

    for pattern, kind in PATTERN_ROUTES:
        match = pattern.match(payload)
        if match:
            return CallbackRoute(kind=kind, param=match.group(1), raw=payload)

    return CallbackRoute(kind=RouteKind.UNKNOWN, raw=payload)
