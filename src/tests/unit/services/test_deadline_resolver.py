"""Тесты для DeadlineResolver."""

import re
from datetime import date, datetime, timedelta, timezone

import pytest

from src.core.enums import DeadlineChoice
from src.services.deadline_resolver import DeadlineResolver, end_of_day
from src.shared.errors import InvalidDateError, InvalidHoursError, PastDateError, ValidationError


def eod(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, 23, 59, 59, 999000, tzinfo=timezone.utc)


class TestEndOfDay:
    """Тесты конца суток."""

    def test_end_of_day(self):
        """Тест: конец суток 23:59:59.999 UTC."""
        assert end_of_day(date(2025, 1, 1)) == eod(2025, 1, 1)


class TestResolve:
    """Тесты разбора свободного текста."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("сегодня", eod(2025, 3, 10)),
            ("Сделать СЕГОДНЯ вечером", eod(2025, 3, 10)),
            ("today", eod(2025, 3, 10)),
            ("завтра", eod(2025, 3, 11)),
            ("by tomorrow", eod(2025, 3, 11)),
            ("через 3 дня", eod(2025, 3, 13)),
            ("через 5 дней", eod(2025, 3, 15)),
            ("через 1 день", eod(2025, 3, 11)),
            ("in 2 days", eod(2025, 3, 12)),
            ("2099-01-01", eod(2099, 1, 1)),
            ("до 2025-12-31 включительно", eod(2025, 12, 31)),
        ],
    )
    def test_day_rules(self, resolver: DeadlineResolver, now: datetime, text: str, expected: datetime):
        """Тест правил с точностью до суток."""
        assert resolver.resolve(text, now) == expected

    @pytest.mark.parametrize("text", ["через 3 часа", "через 1 час", "через 3 часов", "in 3 hours"])
    def test_hours_rule(self, resolver: DeadlineResolver, now: datetime, text: str):
        """Тест правила "через N часов" (без округления до суток)."""
        hours = int("".join(ch for ch in text if ch.isdigit()))
        assert resolver.resolve(text, now) == now + timedelta(hours=hours)

    @pytest.mark.parametrize("text", [None, "", "когда-нибудь", "next month", "2025-13-45"])
    def test_unrecognized(self, resolver: DeadlineResolver, now: datetime, text: str | None):
        """Тест: нераспознанный текст даёт None."""
        assert resolver.resolve(text, now) is None

    def test_first_rule_wins(self, resolver: DeadlineResolver, now: datetime):
        """Тест: при нескольких совпадениях срабатывает первое правило."""
        assert resolver.resolve("завтра или через 5 дней", now) == eod(2025, 3, 11)

    def test_overflow_returns_none(self, resolver: DeadlineResolver, now: datetime):
        """Тест: огромное число дней не ломает разбор."""
        assert resolver.resolve("через 99999999 дней", now) is None

    @pytest.mark.parametrize(
        "text",
        ["in " + "9" * 5000 + " hours", "через " + "9" * 5000 + " часов", "через " + "9" * 5000 + " дней"],
    )
    def test_huge_number_returns_none(self, resolver: DeadlineResolver, now: datetime, text: str):
        """Тест: число длиннее лимита int() не распознаётся как дедлайн."""
        assert resolver.resolve(text, now) is None

    def test_rule_value_error_returns_none(self, now: datetime):
        def broken(_match, _now):
            raise ValueError("bad")

        resolver = DeadlineResolver(rules=[(re.compile(r"когда"), broken)])

        assert resolver.resolve("когда-нибудь", now) is None

    def test_deterministic(self, resolver: DeadlineResolver, now: datetime):
        """Тест: одинаковый ввод и время дают одинаковый результат."""
        assert resolver.resolve("через 3 дня", now) == resolver.resolve("через 3 дня", now)


class TestParseHours:
    """Тесты ввода часов в диалоге."""

    @pytest.mark.parametrize("text,expected", [("3", 3), (" 24 ", 24), ("+5", 5)])
    def test_valid(self, resolver: DeadlineResolver, text: str, expected: int):
        assert resolver.parse_hours(text) == expected

    @pytest.mark.parametrize("text", ["0", "-1", "abc", "1.5", "", "3 часа", "99999999999", "9" * 5000])
    def test_invalid(self, resolver: DeadlineResolver, text: str):
        """Тест: не целое положительное число отклоняется."""
        with pytest.raises(InvalidHoursError):
            resolver.parse_hours(text)

    def test_hours_from_now(self, resolver: DeadlineResolver, now: datetime):
        assert resolver.hours_from_now("3", now) == now + timedelta(hours=3)

    def test_invalid_hours_is_validation_error(self, resolver: DeadlineResolver):
        """Тест: ошибка ввода часов относится к ошибкам валидации."""
        with pytest.raises(ValidationError) as exc_info:
            resolver.parse_hours("abc")
        assert "/quit" in exc_info.value.user_message


class TestParseDate:
    """Тесты ввода даты в диалоге."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("2099-01-01", eod(2099, 1, 1)),
            ("31.12.2025", eod(2025, 12, 31)),
            ("1.4.2025", eod(2025, 4, 1)),
            ("2025-03-10", eod(2025, 3, 10)),
        ],
    )
    def test_valid(self, resolver: DeadlineResolver, now: datetime, text: str, expected: datetime):
        assert resolver.parse_date(text, now) == expected

    @pytest.mark.parametrize("text", ["завтра", "2025/12/31", "2025-02-30", "32.01.2026", "31-12-2025"])
    def test_invalid_format(self, resolver: DeadlineResolver, now: datetime, text: str):
        with pytest.raises(InvalidDateError):
            resolver.parse_date(text, now)

    @pytest.mark.parametrize("text", ["2020-01-01", "09.03.2025"])
    def test_past_date(self, resolver: DeadlineResolver, now: datetime, text: str):
        """Тест: дата в прошлом отклоняется."""
        with pytest.raises(PastDateError):
            resolver.parse_date(text, now)


class TestPreset:
    """Тесты кнопок быстрого выбора."""

    @pytest.mark.parametrize(
        "choice,expected",
        [
            (DeadlineChoice.TODAY, eod(2025, 3, 10)),
            (DeadlineChoice.TOMORROW, eod(2025, 3, 11)),
            (DeadlineChoice.THREE_DAYS, eod(2025, 3, 13)),
            (DeadlineChoice.WEEK, eod(2025, 3, 17)),
            ("week", eod(2025, 3, 17)),
        ],
    )
    def test_presets(self, resolver: DeadlineResolver, now: datetime, choice, expected: datetime):
        assert resolver.preset(choice, now) == expected

    def test_none(self, resolver: DeadlineResolver, now: datetime):
        assert resolver.preset(DeadlineChoice.NONE, now) is None

    @pytest.mark.parametrize("choice", [DeadlineChoice.CUSTOM_HOURS, DeadlineChoice.CUSTOM_DATE, "month"])
    def test_manual_choices_rejected(self, resolver: DeadlineResolver, now: datetime, choice):
        """Тест: варианты ручного ввода не имеют пресета."""
        with pytest.raises(ValidationError):
            resolver.preset(choice, now)
