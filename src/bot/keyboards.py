"""Inline клавиатуры бота."""

from src.bot.texts import PRIORITY_EMOJI, PRIORITY_TEXT, truncate
from src.core import constants as c
from src.core.enums import DeadlineChoice, Priority
from src.core.models import Button, Keyboard, Task


def _row(text: str, payload: str) -> list[Button]:
    return [Button(text=text, payload=payload)]


CANCEL_ROW = _row("❌ Отменить", c.CB_TASK_CANCEL)
MAIN_MENU_ROW = _row("⬅️ Главное меню", c.CB_MENU_MAIN)


def main_menu() -> Keyboard:
    return [
        _row("📋 Мои задачи", c.CB_TASKS_LIST),
        _row("➕ Создать задачу", c.CB_TASK_CREATE),
        _row("🤖 AI Помощник", c.CB_AI_CREATE_TASK),
        _row("📊 Статистика", c.CB_STATS_SHOW),
        _row("🍅 Фокус", c.CB_FOCUS_START),
        _row("❓ Справка", c.CB_HELP),
    ]


def back_to_menu() -> Keyboard:
    return [MAIN_MENU_ROW]


def help_button() -> Keyboard:
    return [_row("❓ Справка", c.CB_HELP)]


def cancel() -> Keyboard:
    return [CANCEL_ROW]


def priority_choice() -> Keyboard:
    def button(priority: Priority) -> Button:
        return Button(
            text=f"{PRIORITY_EMOJI[priority]} {PRIORITY_TEXT[priority]}",
            payload=f"{c.CB_PRIORITY_PREFIX}{priority.value}",
        )

    return [
        [button(Priority.HIGH), button(Priority.MEDIUM)],
        [button(Priority.LOW)],
        CANCEL_ROW,
    ]


def deadline_choice() -> Keyboard:
    def button(text: str, choice: DeadlineChoice) -> Button:
        return Button(text=text, payload=f"{c.CB_DEADLINE_PREFIX}{choice.value}")

    return [
        [button("Сегодня", DeadlineChoice.TODAY), button("Завтра", DeadlineChoice.TOMORROW)],
        [button("Через 3 дня", DeadlineChoice.THREE_DAYS), button("Через неделю", DeadlineChoice.WEEK)],
        [
            button("⏰ Задать в часах", DeadlineChoice.CUSTOM_HOURS),
            button("📅 Задать датой", DeadlineChoice.CUSTOM_DATE),
        ],
        [button("Без дедлайна", DeadlineChoice.NONE)],
        CANCEL_ROW,
    ]


def empty_task_list() -> Keyboard:
    return [_row("➕ Создать задачу", c.CB_TASK_CREATE), MAIN_MENU_ROW]


def task_list(tasks: list[Task], limit: int, title_length: int) -> Keyboard:
    rows = [
        _row(f"{index}. {truncate(task.title, title_length)}", f"{c.CB_TASK_VIEW_PREFIX}{task.id}")
        for index, task in enumerate(tasks[:limit], start=1)
    ]
    rows.append(_row("➕ Создать задачу", c.CB_TASK_CREATE))
    rows.append(_row("📊 Статистика", c.CB_STATS_SHOW))
    rows.append(MAIN_MENU_ROW)
    return rows


def task_card(task: Task) -> Keyboard:
    return [
        _row("✅ Выполнено", f"{c.CB_TASK_COMPLETE_PREFIX}{task.id}"),
        _row("🗑️ Удалить", f"{c.CB_TASK_DELETE_PREFIX}{task.id}"),
        _row("⬅️ К списку задач", c.CB_TASKS_LIST),
    ]


def stats() -> Keyboard:
    return [
        _row("📋 Мои задачи", c.CB_TASKS_LIST),
        _row("🗑️ Очистить выполненные", c.CB_STATS_CLEAR),
        MAIN_MENU_ROW,
    ]


def ai_menu() -> Keyboard:
    return [
        _row("📝 Создать задачу через AI", c.CB_AI_CREATE_TASK),
        _row("❓ Задать вопрос", c.CB_AI_ASK),
        MAIN_MENU_ROW,
    ]


def ai_prompt() -> Keyboard:
    return [_row("❌ Отменить", c.CB_MENU_MAIN)]


def ai_task_created() -> Keyboard:
    return [
        _row("📋 Мои задачи", c.CB_TASKS_LIST),
        _row("➕ Создать еще", c.CB_AI_CREATE_TASK),
        MAIN_MENU_ROW,
    ]


def ai_answered() -> Keyboard:
    return [
        _row("❓ Задать еще вопрос", c.CB_AI_ASK),
        _row("📝 Создать задачу", c.CB_AI_CREATE_TASK),
        MAIN_MENU_ROW,
    ]


def voice_task_created() -> Keyboard:
    return [
        _row("📋 Мои задачи", c.CB_TASKS_LIST),
        _row("➕ Создать еще", c.CB_TASK_CREATE),
        MAIN_MENU_ROW,
    ]


def voice_answered() -> Keyboard:
    return [_row("📝 Создать задачу", c.CB_TASK_CREATE), MAIN_MENU_ROW]
