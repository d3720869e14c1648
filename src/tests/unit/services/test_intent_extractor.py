"""Тесты для IntentExtractor и SpeechTranscriber."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.core.enums import Priority
from src.core.models import TaskIntent
from src.services.intent_extractor import (
    ASSISTANT_SYSTEM_PROMPT,
    INTENT_SYSTEM_PROMPT,
    IntentExtractor,
    extract_json_object,
    parse_intent_payload,
)
from src.services.speech_transcriber import SpeechTranscriber
from src.shared.errors import AuthError, ServiceError


@pytest.fixture
def chat_client() -> MagicMock:
    client = MagicMock()
    client.chat = AsyncMock()
    return client


class TestExtractJsonObject:
    """Тесты поиска JSON в ответе модели."""

    def test_plain_object(self):
        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_object_inside_prose(self):
        text = 'Вот результат:\n```json\n{"isTaskCreation": true, "title": "Отчёт"}\n```\nГотово!'
        assert extract_json_object(text) == '{"isTaskCreation": true, "title": "Отчёт"}'

    def test_nested_and_braces_in_strings(self):
        """Тест: скобки внутри строк не влияют на баланс."""
        text = 'ok {"title": "скобка } внутри", "meta": {"x": "{"}} хвост }'
        assert extract_json_object(text) == '{"title": "скобка } внутри", "meta": {"x": "{"}}'

    @pytest.mark.parametrize("text", ["", "нет json", "{ незакрытый", "}{"])
    def test_no_object(self, text: str):
        assert extract_json_object(text) is None


class TestParseIntentPayload:
    """Тесты разбора намерения."""

    def test_full_intent(self):
        intent = parse_intent_payload(
            'Ответ: {"isTaskCreation": true, "title": "Купить молоко", '
            '"description": "2 литра", "priority": "high", "deadline": "завтра"}'
        )
        assert intent.is_task_creation is True
        assert intent.title == "Купить молоко"
        assert intent.description == "2 литра"
        assert intent.priority is Priority.HIGH
        assert intent.deadline_text == "завтра"
        assert intent.creates_task

    def test_unknown_priority_dropped(self):
        intent = parse_intent_payload('{"isTaskCreation": true, "title": "X", "priority": "urgent"}')
        assert intent.priority is None

    def test_task_without_title_is_not_created(self):
        intent = parse_intent_payload('{"isTaskCreation": true, "title": "  "}')
        assert intent.title is None
        assert not intent.creates_task

    @pytest.mark.parametrize("text", ["Просто текст", '{"isTaskCreation": tru}', "[1, 2]", '{"isTaskCreation": "maybe"}'])
    def test_garbage_is_not_task(self, text: str):
        """Тест: неразбираемый ответ - не задача."""
        assert parse_intent_payload(text) == TaskIntent(is_task_creation=False)


class TestIntentExtractor:
    """Тесты IntentExtractor."""

    @pytest.mark.asyncio
    async def test_parse_task_intent(self, chat_client: MagicMock):
        chat_client.chat.return_value = '{"isTaskCreation": true, "title": "Позвонить маме"}'
        extractor = IntentExtractor(chat_client)

        intent = await extractor.parse_task_intent("позвони маме")

        assert intent.title == "Позвонить маме"
        messages = chat_client.chat.call_args.args[0]
        assert messages[0].role == "system"
        assert messages[0].content == INTENT_SYSTEM_PROMPT
        assert messages[1].content == "позвони маме"
        assert chat_client.chat.call_args.kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [AuthError("gigachat", "HTTP 401"), ServiceError("gigachat", "timeout")])
    async def test_parse_task_intent_never_raises(self, chat_client: MagicMock, error: Exception):
        """Тест: ошибка сервиса даёт намерение "не задача"."""
        chat_client.chat.side_effect = error
        extractor = IntentExtractor(chat_client)

        intent = await extractor.parse_task_intent("что угодно")

        assert intent.is_task_creation is False

    @pytest.mark.asyncio
    async def test_answer_question_with_context(self, chat_client: MagicMock):
        chat_client.chat.return_value = "Ответ"
        extractor = IntentExtractor(chat_client)

        answer = await extractor.answer_question("Как планировать?", "У пользователя 3 активных задач.")

        assert answer == "Ответ"
        system = chat_client.chat.call_args.args[0][0].content
        assert system.startswith(ASSISTANT_SYSTEM_PROMPT)
        assert system.endswith("Контекст пользователя:\nУ пользователя 3 активных задач.")

    @pytest.mark.asyncio
    async def test_answer_question_propagates_errors(self, chat_client: MagicMock):
        chat_client.chat.side_effect = ServiceError("gigachat", "HTTP 500", status=500)
        extractor = IntentExtractor(chat_client)

        with pytest.raises(ServiceError):
            await extractor.answer_question("вопрос")


class TestSpeechTranscriber:
    """Тесты SpeechTranscriber."""

    @pytest.mark.asyncio
    async def test_first_non_blank_candidate(self):
        client = MagicMock()
        client.recognize = AsyncMock(return_value=["", "   ", "  купить хлеб ", "другое"])

        assert await SpeechTranscriber(client).transcribe(b"pcm") == "купить хлеб"

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        client = MagicMock()
        client.recognize = AsyncMock(return_value=[])

        assert await SpeechTranscriber(client).transcribe(b"pcm") == ""

    @pytest.mark.asyncio
    async def test_transcribe_file(self, tmp_path: Path):
        path = tmp_path / "audio.pcm"
        path.write_bytes(b"\x01\x02")
        client = MagicMock()
        client.recognize = AsyncMock(return_value=["текст"])

        assert await SpeechTranscriber(client).transcribe_file(path) == "текст"
        client.recognize.assert_awaited_once_with(b"\x01\x02")

    @pytest.mark.asyncio
    async def test_errors_propagate(self):
        client = MagicMock()
        client.recognize = AsyncMock(side_effect=AuthError("salute_speech"))

        with pytest.raises(AuthError):
            await SpeechTranscriber(client).transcribe(b"pcm")
