"""Deadline Resolver для MaxFlow Assistant.

Разбор дедлайна из текста на естественном языке (русском и английском)
и валидация явного ввода в пошаговом диалоге.
"""

import re
from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone

from src.core.constants import MAX_DEADLINE_HOURS
from src.core.enums import DeadlineChoice
from src.core.models import utcnow
from src.shared.errors import InvalidDateError, InvalidHoursError, PastDateError, ValidationError

END_OF_DAY = time(23, 59, 59, 999000, tzinfo=timezone.utc)

ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
DOTTED_DATE_RE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
HOURS_RE = re.compile(r"^\+?\d{1,6}$")

Transform = Callable[[re.Match[str], datetime], datetime | None]


def end_of_day(day: date) -> datetime:
    """Конец суток (23:59:59.999 UTC) для даты.

    Args:
        day: Календарная дата.

    Returns:
        Момент конца суток в UTC.

    """
    return datetime.combine(day, END_OF_DAY)


def _days_ahead(days: int, now: datetime) -> datetime:
    return end_of_day((now + timedelta(days=days)).date())


def _iso_date(match: re.Match[str], _now: datetime) -> datetime | None:
    try:
        day = date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None
    return end_of_day(day)


# Порядок важен: срабатывает первое совпадение
RULES: list[tuple[re.Pattern[str], Transform]] = [
    (re.compile(r"сегодня|\btoday\b"), lambda _m, now: _days_ahead(0, now)),
    (re.compile(r"завтра|\btomorrow\b"), lambda _m, now: _days_ahead(1, now)),
    (
        re.compile(r"через\s+(\d{1,6})\s+(?:день|дня|дней)|\bin\s+(\d{1,6})\s+days?\b"),
        lambda m, now: _days_ahead(int(m.group(1) or m.group(2)), now),
    ),
    (
        re.compile(r"через\s+(\d{1,6})\s+(?:час|часа|часов)|\bin\s+(\d{1,6})\s+hours?\b"),
        lambda m, now: now + timedelta(hours=int(m.group(1) or m.group(2))),
    ),
    (re.compile(r"(\d{4})-(\d{2})-(\d{2})"), _iso_date),
]

PRESET_DAYS = {
    DeadlineChoice.TODAY: 0,
    DeadlineChoice.TOMORROW: 1,
    DeadlineChoice.THREE_DAYS: 3,
    DeadlineChoice.WEEK: 7,
}


class DeadlineResolver:
    """Преобразование текста дедлайна в момент времени UTC."""

    def __init__(self, rules: list[tuple[re.Pattern[str], Transform]] | None = None) -> None:
        """Инициализировать resolver.

        Args:
            rules: Упорядоченная таблица (шаблон, преобразование).

        """
        self.rules = rules if rules is not None else RULES

    def resolve(self, free_text: str | None, now: datetime | None = None) -> datetime | None:
        """Разобрать дедлайн из свободного текста.

        Args:
            free_text: Текст дедлайна ("завтра", "через 3 дня", "2099-01-01"...).
            now: Текущее время (UTC).

        Returns:
            Момент дедлайна или None, если текст не распознан.

        """
        if not free_text:
            return None

        now = now or utcnow()
        text = free_text.lower()

        for pattern, transform in self.rules:
            match = pattern.search(text)
            if match:
                try:
                    return transform(match, now)
                except (OverflowError, ValueError):
                    return None
        return None

    def parse_hours(self, text: str) -> int:
        """Проверить ввод количества часов.

        Args:
            text: Текст пользователя.

        Returns:
            Положительное целое число часов.

        Raises:
            InvalidHoursError: Если ввод не целое положительное число.

        """
        raw = text.strip()
        if not HOURS_RE.match(raw):
            raise InvalidHoursError(raw)

        hours = int(raw)
        if hours <= 0 or hours > MAX_DEADLINE_HOURS:
            raise InvalidHoursError(raw)
        return hours

    def hours_from_now(self, text: str, now: datetime | None = None) -> datetime:
        """Дедлайн через N часов от текущего момента.

        Raises:
            InvalidHoursError: Если ввод не целое положительное число.

        """
        hours = self.parse_hours(text)
        return (now or utcnow()) + timedelta(hours=hours)

    def parse_date(self, text: str, now: datetime | None = None) -> datetime:
        """Проверить ввод даты (ГГГГ-ММ-ДД или ДД.ММ.ГГГГ).

        Args:
            text: Текст пользователя.
            now: Текущее время (UTC).

        Returns:
            Конец указанных суток в UTC.

        Raises:
            InvalidDateError: Если формат неверный или даты не существует.
            PastDateError: Если дата не строго в будущем.

        """
        raw = text.strip()

        if match := ISO_DATE_RE.match(raw):
            year, month, day = match.group(1), match.group(2), match.group(3)
        elif match := DOTTED_DATE_RE.match(raw):
            day, month, year = match.group(1), match.group(2), match.group(3)
        else:
            raise InvalidDateError(raw)

        try:
            deadline = end_of_day(date(int(year), int(month), int(day)))
        except ValueError as e:
            raise InvalidDateError(raw) from e

        if deadline <= (now or utcnow()):
            raise PastDateError(raw)
        return deadline

    def preset(self, choice: DeadlineChoice | str, now: datetime | None = None) -> datetime | None:
        """Дедлайн для кнопки быстрого выбора.

        Args:
            choice: today, tomorrow, 3days, week или none.
            now: Текущее время (UTC).

        Returns:
            Конец соответствующих суток или None для "none".

        Raises:
            ValidationError: Для вариантов, требующих ручного ввода.

        """
        try:
            choice = DeadlineChoice(choice)
        except ValueError as e:
            raise ValidationError(message=f"Неизвестный вариант дедлайна '{choice}'") from e

        if choice is DeadlineChoice.NONE:
            return None
        if choice not in PRESET_DAYS:
            raise ValidationError(
                message=f"Вариант '{choice.value}' требует ручного ввода",
                details={"choice": choice.value},
            )
        return _days_ahead(PRESET_DAYS[choice], now or utcnow())


# Глобальный экземпляр (stateless)
deadline_resolver = DeadlineResolver()
