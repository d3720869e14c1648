"""Тесты для FocusTimerService и EventDispatcher."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.bot import texts
from src.services.dispatcher import EventDispatcher
from src.services.focus_timer import FocusTimerService
from src.shared.errors import ServiceError
from src.tests.unit.conftest import FakeMessenger


class TestFocusTimer:
    """Тесты фокус-таймеров."""

    @pytest.mark.asyncio
    async def test_notifies_after_duration(self, messenger: FakeMessenger):
        focus = FocusTimerService(messenger, duration_seconds=0.01)

        focus.start(1)
        await asyncio.sleep(0.05)

        assert messenger.sent == [(1, texts.FOCUS_FINISHED, None)]
        assert focus.active_users == []

    @pytest.mark.asyncio
    async def test_restart_replaces_timer(self, messenger: FakeMessenger):
        """Тест: повторный запуск отменяет предыдущий таймер."""
        focus = FocusTimerService(messenger, duration_seconds=0.02)

        focus.start(1)
        focus.start(1)
        await asyncio.sleep(0.06)

        assert len(messenger.sent) == 1

    @pytest.mark.asyncio
    async def test_cancel(self, messenger: FakeMessenger):
        focus = FocusTimerService(messenger, duration_seconds=10)
        focus.start(1)

        assert focus.cancel(1) is True
        assert focus.cancel(1) is False
        await asyncio.sleep(0)
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending(self, messenger: FakeMessenger):
        """Тест: при остановке все ожидающие таймеры отменяются."""
        focus = FocusTimerService(messenger, duration_seconds=3600)
        focus.start(1)
        focus.start(2)
        assert sorted(focus.active_users) == [1, 2]

        await focus.shutdown()

        assert focus.active_users == []
        assert messenger.sent == []

    @pytest.mark.asyncio
    async def test_delivery_failure_is_logged(self, messenger: FakeMessenger):
        messenger.send_text = AsyncMock(side_effect=ServiceError("max", "HTTP 500", status=500))
        focus = FocusTimerService(messenger, duration_seconds=0.01)

        focus.start(1)
        await asyncio.sleep(0.05)

        messenger.send_text.assert_awaited_once()
        assert focus.active_users == []

    @pytest.mark.asyncio
    async def test_unexpected_delivery_error_is_logged(self, messenger: FakeMessenger):
        """Тест: неожиданная ошибка отправки не остаётся в задаче таймера."""
        messenger.send_text = AsyncMock(side_effect=RuntimeError("connection reset"))
        focus = FocusTimerService(messenger, duration_seconds=0.01)

        focus.start(1)
        task = focus._timers[1]
        await asyncio.sleep(0.05)

        assert task.done()
        assert task.exception() is None
        assert focus.active_users == []


class TestEventDispatcher:
    """Тесты запуска обработки событий."""

    @pytest.mark.asyncio
    async def test_spawn_and_drain(self):
        dispatcher = EventDispatcher()
        done: list[int] = []

        async def handle(value: int) -> None:
            await asyncio.sleep(0.01)
            done.append(value)

        for value in range(3):
            assert dispatcher.spawn(handle(value))
        assert dispatcher.pending == 3

        await dispatcher.drain(timeout=1)

        assert sorted(done) == [0, 1, 2]
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_rejects_after_drain(self):
        dispatcher = EventDispatcher()
        await dispatcher.drain()

        async def handle() -> None:
            return None

        assert dispatcher.spawn(handle()) is False

    @pytest.mark.asyncio
    async def test_drain_timeout_cancels(self):
        dispatcher = EventDispatcher()
        dispatcher.spawn(asyncio.sleep(3600))

        await dispatcher.drain(timeout=0.01)

        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_failed_task_does_not_break_dispatcher(self):
        dispatcher = EventDispatcher()

        async def fail() -> None:
            raise RuntimeError("boom")

        dispatcher.spawn(fail())
        await dispatcher.drain(timeout=1)

        assert dispatcher.pending == 0
