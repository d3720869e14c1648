"""Тексты сообщений бота.

Все пользовательские строки и форматирование задач, статистики и дат.
"""

from datetime import datetime

from src.core.enums import Priority
from src.core.models import Task, TaskStats

PRIORITY_EMOJI = {Priority.HIGH: "🔴", Priority.MEDIUM: "🟡", Priority.LOW: "🟢"}
PRIORITY_TEXT = {Priority.HIGH: "Высокий", Priority.MEDIUM: "Средний", Priority.LOW: "Низкий"}

MONTHS_GENITIVE = (
    "января",
    "февраля",
    "марта",
    "апреля",
    "мая",
    "июня",
    "июля",
    "августа",
    "сентября",
    "октября",
    "ноября",
    "декабря",
)

CANCEL_HINT = '_Для отмены введите /quit или нажмите кнопку "Отменить"_'
QUIT_HINT = "_Для отмены введите /quit_"

WELCOME = """👋 **Добро пожаловать в Max efficiency!**

Бот для управления задачами и повышения продуктивности.

**Доступные команды:**
- `/task` — создать новую задачу
- `/tasks` — просмотр задач
- `/stats` — статистика выполнения
- `/focus` — запустить Pomodoro-таймер (25 минут)
- `/ai` — AI помощник (создание задач и вопросы)
- `/help` — справка по командам

**Создавайте задачи голосом:**
🎤 Просто отправьте голосовое сообщение, например:
_"Создай задачу: позвонить клиенту завтра, высокий приоритет"_"""

HELP = """📋 **Справка по командам Max efficiency**

**Основные команды:**
• `/start` - Главное меню
• `/help` - Эта справка
• `/task` - Создать новую задачу
• `/tasks` - Просмотр задач
• `/stats` - Статистика выполнения
• `/focus` - Запустить таймер фокуса (25 минут)
• `/ai` - AI помощник

**🎤 Голосовые сообщения:**
• Отправьте голосовое сообщение для создания задачи
• AI автоматически распознает речь и извлечет:
  - Название задачи
  - Описание
  - Приоритет (высокий/средний/низкий)
  - Дедлайн (сегодня/завтра/через N дней)
• **Примеры:**
  - _"Купить молоко"_
  - _"Позвонить клиенту завтра"_
  - _"Срочно: подготовить отчет через 3 дня"_

**AI Помощник:**
• Создавайте задачи естественным языком (текстом)
• Задавайте вопросы о продуктивности
• Получайте советы по управлению временем
• Просто напишите боту, что вам нужно!

**Управление задачами:**
• В разделе "Задачи" вы можете просматривать, выполнять и удалять свои задачи
• Задачи сортируются по приоритету (высокий, средний, низкий)
• Доступна статистика по выполнению задач"""

UNKNOWN_COMMAND = (
    "❓ **Неизвестная команда**\n\n"
    "Список доступных команд вы можете посмотреть, написав `/help` или нажав на кнопку ниже:"
)
UNKNOWN_ACTION = "Неизвестное действие"
GENERIC_ERROR = "❌ Произошла ошибка. Попробуйте еще раз."
GENERIC_ERROR_TOAST = "Произошла ошибка. Попробуйте еще раз."
AI_DISABLED = "⚠️ AI помощник сейчас недоступен. Используйте команду /task для создания задачи."

# === Диалог создания задачи ===
ASK_TITLE = f"📝 Давайте создадим новую задачу!\n\n**Введите название задачи:**\n\n{CANCEL_HINT}"
ASK_DESCRIPTION = f"📋 **Отлично! Теперь введите описание задачи:**\n\n{CANCEL_HINT}"
ASK_PRIORITY = "🎯 **Выберите приоритет задачи:**"
ASK_DEADLINE = "⏰ **Выберите дедлайн для задачи:**"
ASK_HOURS = f"⏰ **Укажите дедлайн в часах**\n\nВведите количество часов:\n\n{QUIT_HINT}"
ASK_DATE = (
    "📅 **Укажите дату дедлайна**\n\nВведите дату в формате:\n"
    "• `ГГГГ-ММ-ДД` (например: 2024-12-31)\n"
    f"• `ДД.ММ.ГГГГ` (например: 31.12.2024)\n\n{QUIT_HINT}"
)
TEXT_EXPECTED = f"✍️ Пожалуйста, ответьте текстом.\n\n{CANCEL_HINT}"
DIALOGUE_CANCELLED = "❌ **Создание задачи отменено**"
TASK_SAVED_TOAST = "Задача сохранена!"
SESSION_EXPIRED = "Сессия истекла. Начните добавление задачи заново."

# === Задачи ===
NO_TASKS = "📋 **У вас пока нет активных задач**\n\nСоздайте новую задачу, чтобы начать!"
TASK_NOT_FOUND = "Задача не найдена"
TASK_COMPLETED = "✅ **Задача выполнена!**\n\nОтличная работа! 🎉"
TASK_COMPLETED_TOAST = "Задача выполнена!"
TASK_COMPLETE_FAILED = "Не удалось выполнить задачу"
TASK_DELETED = "🗑️ **Задача удалена**"
TASK_DELETED_TOAST = "Задача удалена"
TASK_DELETE_FAILED = "Не удалось удалить задачу"
TASK_CREATE_FAILED = (
    "❌ **Ошибка при создании задачи**\n\n"
    "Не удалось создать задачу. Попробуйте использовать команду /task для ручного создания."
)

# === AI ===
AI_MENU = (
    "🤖 **AI Помощник MaxFlow Zen**\n\n"
    "Я могу помочь вам:\n"
    "• Создать задачу естественным языком\n"
    "• Ответить на вопросы о продуктивности\n"
    "• Дать советы по управлению задачами\n\n"
    "Просто напишите мне, что вам нужно!"
)
AI_CREATE_TASK = (
    "🤖 **Создание задачи через AI**\n\n"
    "Опишите задачу естественным языком. Например:\n"
    '• "Создай задачу: позвонить клиенту завтра, высокий приоритет"\n'
    '• "Нужно подготовить отчет через 3 дня"\n'
    '• "Купить продукты сегодня вечером"\n\n'
    "Я автоматически извлеку название, описание, приоритет и дедлайн!"
)
AI_ASK = (
    "❓ **Задайте вопрос AI помощнику**\n\n"
    "Я могу помочь с:\n"
    "• Советами по продуктивности\n"
    "• Методами управления временем\n"
    "• Приоритизацией задач\n"
    "• Борьбой с прокрастинацией\n\n"
    "Просто напишите ваш вопрос!"
)
AI_ANSWER_FAILED = "❌ **Ошибка при получении ответа**\n\nНе удалось получить ответ от AI. Попробуйте позже."
VOICE_REPHRASE_HINT = (
    "_Если вы хотели создать задачу, попробуйте сформулировать запрос более явно, "
    'например: "Создай задачу: позвонить клиенту завтра"_'
)
ACTIVE_TASKS_CONTEXT = "У пользователя {count} активных задач."
NO_ACTIVE_TASKS_CONTEXT = "У пользователя нет активных задач."

# === Фокус ===
FOCUS_STARTED = "🍅 Поехали! {minutes} минут фокуса. Не отвлекайся, я напишу, когда время выйдет."
FOCUS_FINISHED = "🔔 Дзынь! Время вышло. 5 минут отдыха!"


def priority_emoji(priority: Priority | str) -> str:
    """Эмодзи приоритета (⚪ для неизвестного)."""
    try:
        return PRIORITY_EMOJI[Priority(priority)]
    except ValueError:
        return "⚪"


def priority_text(priority: Priority | str) -> str:
    """Название приоритета по-русски."""
    try:
        return PRIORITY_TEXT[Priority(priority)]
    except ValueError:
        return "Не указан"


def format_date(value: datetime) -> str:
    """Дата в виде "31 декабря 2024 г."."""
    return f"{value.day} {MONTHS_GENITIVE[value.month - 1]} {value.year} г."


def truncate(text: str, max_length: int) -> str:
    """Обрезать текст с многоточием."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def priority_set(priority: Priority) -> str:
    return f"{priority_emoji(priority)} **Приоритет установлен: {priority_text(priority)}**\n\n{ASK_DEADLINE}"


def task_created(
    title: str,
    priority: Priority,
    deadline: str | None,
    description: str | None = None,
    heading: str = "✅ **Задача добавлена!**",
) -> str:
    """Подтверждение создания задачи.

    Args:
        title: Название задачи.
        priority: Приоритет.
        deadline: Текст дедлайна для показа (None - не задан).
        description: Описание (показывается, если задано).
        heading: Заголовок подтверждения.

    Returns:
        Текст сообщения.

    """
    lines = [heading, "", f"**Название:** {title}"]
    if description:
        lines.append(f"**Описание:** {description}")
    lines.append(f"**Дедлайн:** {deadline or 'не задан'}")
    lines.append(f"**Приоритет:** {priority_emoji(priority)} {priority_text(priority)}")
    return "\n".join(lines)


def task_list(tasks: list[Task], limit: int, title_length: int, now: datetime | None = None) -> str:
    """Список активных задач."""
    lines = [f"📋 **Ваши задачи ({len(tasks)}):**", ""]
    for index, task in enumerate(tasks[:limit], start=1):
        overdue = "⚠️ " if task.is_overdue(now) else ""
        lines.append(f"{index}. {priority_emoji(task.priority)} {overdue}{truncate(task.title, title_length)}")
    return "\n".join(lines)


def task_card(task: Task, now: datetime | None = None) -> str:
    """Карточка задачи."""
    overdue = "\n⚠️ **ПРОСРОЧЕНО!**" if task.is_overdue(now) else ""
    deadline = format_date(task.deadline) if task.deadline else "Не задан"
    return (
        f"📋 **Задача #{task.id[:8]}**\n\n"
        f"**Название:** {task.title}\n"
        f"**Описание:** {task.description or 'Не указано'}\n"
        f"**Приоритет:** {priority_emoji(task.priority)} {priority_text(task.priority)}\n"
        f"**Дедлайн:** {deadline}{overdue}\n"
        f"**Создано:** {format_date(task.created_at)}"
    )


def stats_report(stats: TaskStats, window_days: int) -> str:
    """Отчёт по статистике."""
    return (
        f"📊 **Ваша статистика за {window_days} дней:**\n\n"
        f"📝 Всего задач: {stats.total}\n"
        f"✅ Выполнено: {stats.completed}\n"
        f"⏳ В работе: {stats.pending}\n"
        f"⚠️ Просрочено: {stats.overdue}\n\n"
        "**По приоритетам:**\n"
        f"🔴 Высокий: {stats.by_priority.high}\n"
        f"🟡 Средний: {stats.by_priority.medium}\n"
        f"🟢 Низкий: {stats.by_priority.low}\n\n"
        "**Выполнено:**\n"
        f"📅 Сегодня: {stats.completed_today}\n"
        f"📆 За неделю: {stats.completed_this_week}"
    )


def stats_cleared(count: int) -> tuple[str, str]:
    """Сообщение и уведомление об очистке выполненных задач."""
    return f"🗑️ **Очищено выполненных задач: {count}**", f"Удалено {count} задач"


def ai_answer(answer: str) -> str:
    return f"🤖 **AI Помощник:**\n\n{answer}"


def voice_answer(answer: str) -> str:
    return f"🤖 **Ответ:**\n\n{answer}\n\n{VOICE_REPHRASE_HINT}"


def tasks_context(count: int) -> str:
    """Контекст для ответа на вопрос."""
    return ACTIVE_TASKS_CONTEXT.format(count=count) if count else NO_ACTIVE_TASKS_CONTEXT
