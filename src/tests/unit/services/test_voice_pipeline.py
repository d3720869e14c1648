"""Тесты для VoiceIngestionPipeline.

Главное свойство: после обработки во временной директории не остаётся
файлов вызова, каким бы путём ни закончилась обработка.
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.core.config import VoiceSettings
from src.core.enums import MessageSource
from src.core.models import Attachment, InboundMessage, Reply
from src.services import voice_pipeline
from src.services.voice_pipeline import (
    VOICE_AUTH_FAILED,
    VOICE_RECOGNITION_FAILED,
    VOICE_SERVICE_UNAVAILABLE,
    VoiceIngestionPipeline,
    failure_message,
)
from src.shared.errors import (
    AudioDownloadError,
    AuthError,
    EmptyTranscriptError,
    ServiceError,
    TranscodeError,
    TranscoderNotFoundError,
)

AUDIO_URL = "https://files.test/voice.ogg"


def voice_message(url: str | None = AUDIO_URL) -> InboundMessage:
    return InboundMessage(user_id=7, attachments=[Attachment(type="audio", url=url)])


def audio_server(status_code: int = 200) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, content=b"OggS-fake-audio")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


async def fake_transcode(source: Path, target: Path) -> None:
    assert source.exists()
    target.write_bytes(b"\x00\x00" * 160)


class FakeProcess:
    def __init__(self, returncode: int, stderr: bytes = b"") -> None:
        self.returncode = returncode
        self._stderr = stderr
        self.killed = False

    async def communicate(self) -> tuple[bytes, bytes]:
        return b"", self._stderr

    def kill(self) -> None:
        self.killed = True

    async def wait(self) -> int:
        return self.returncode


@pytest.fixture
def transcriber() -> MagicMock:
    mock = MagicMock()
    mock.transcribe_file = AsyncMock(return_value="купить молоко завтра")
    return mock


@pytest.fixture
def assistant() -> MagicMock:
    mock = MagicMock()
    mock.process = AsyncMock(return_value=Reply(text="✅ создано"))
    return mock


@pytest.fixture
def make_pipeline(tmp_path: Path, transcriber: MagicMock, assistant: MagicMock):
    def factory(http_client: httpx.AsyncClient | None = None) -> VoiceIngestionPipeline:
        return VoiceIngestionPipeline(
            transcriber,
            assistant,
            http_client or audio_server(),
            VoiceSettings(temp_dir=str(tmp_path), ffmpeg_bin="ffmpeg"),
        )

    return factory


def leftovers(directory: Path) -> list[Path]:
    return list(directory.iterdir()) if directory.exists() else []


class TestVoicePipelineSuccess:
    """Тесты успешной обработки."""

    @pytest.mark.asyncio
    async def test_success_routes_to_assistant(
        self, make_pipeline, tmp_path: Path, transcriber: MagicMock, assistant: MagicMock
    ):
        """Тест: расшифровка передаётся в общий путь с меткой voice, файлы удалены."""
        pipeline = make_pipeline()
        pipeline.transcode = fake_transcode

        reply = await pipeline.process(voice_message())

        assert reply == Reply(text="✅ создано")
        assistant.process.assert_awaited_once_with(7, "купить молоко завтра", MessageSource.VOICE)
        pcm_path = transcriber.transcribe_file.call_args.args[0]
        assert pcm_path.suffix == ".pcm"
        assert pcm_path.parent == tmp_path
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_no_audio_returns_none(self, make_pipeline, assistant: MagicMock):
        pipeline = make_pipeline()

        assert await pipeline.process(InboundMessage(user_id=7, text="текст")) is None
        assistant.process.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unique_filenames(self, make_pipeline):
        """Тест: у параллельных вызовов разные временные файлы."""
        pipeline = make_pipeline()

        async with pipeline.workspace(7) as first, pipeline.workspace(7) as second:
            assert first.source != second.source
            assert first.pcm != second.pcm
            assert first.source.name.startswith("voice_7_")


class TestVoicePipelineFailures:
    """Тесты ошибок: ровно один ответ, файлы удалены."""

    @pytest.mark.asyncio
    async def test_empty_transcript(self, make_pipeline, tmp_path: Path, transcriber: MagicMock, assistant: MagicMock):
        transcriber.transcribe_file.return_value = ""
        pipeline = make_pipeline()
        pipeline.transcode = fake_transcode

        reply = await pipeline.process(voice_message())

        assert reply.text == EmptyTranscriptError.user_message
        assistant.process.assert_not_awaited()
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_missing_transcoder(
        self, make_pipeline, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, transcriber: MagicMock
    ):
        """Тест: ffmpeg не установлен - сообщение об этом, скачанный файл удалён."""
        monkeypatch.setattr(voice_pipeline.shutil, "which", lambda _name: None)
        pipeline = make_pipeline()

        reply = await pipeline.process(voice_message())

        assert reply.text == TranscoderNotFoundError.user_message
        transcriber.transcribe_file.assert_not_awaited()
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_transcode_failure(self, make_pipeline, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(voice_pipeline.shutil, "which", lambda name: f"/usr/bin/{name}")
        monkeypatch.setattr(
            voice_pipeline.asyncio,
            "create_subprocess_exec",
            AsyncMock(return_value=FakeProcess(returncode=1, stderr=b"Invalid data found")),
        )
        pipeline = make_pipeline()

        reply = await pipeline.process(voice_message())

        assert reply.text == TranscodeError.user_message
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_transcode_arguments(self, make_pipeline, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        """Тест: ffmpeg вызывается для 16 кГц, 16 бит, моно, сырой PCM."""
        spawn = AsyncMock(return_value=FakeProcess(returncode=0))
        monkeypatch.setattr(voice_pipeline.shutil, "which", lambda name: f"/usr/bin/{name}")
        monkeypatch.setattr(voice_pipeline.asyncio, "create_subprocess_exec", spawn)
        pipeline = make_pipeline()

        await pipeline.transcode(tmp_path / "in.ogg", tmp_path / "out.pcm")

        args = list(spawn.call_args.args)
        assert args[0] == "/usr/bin/ffmpeg"
        assert args[args.index("-ar") + 1] == "16000"
        assert args[args.index("-ac") + 1] == "1"
        assert args[args.index("-f") + 1] == "s16le"
        assert args[-1] == str(tmp_path / "out.pcm")

    @pytest.mark.asyncio
    async def test_download_failure(self, make_pipeline, tmp_path: Path):
        pipeline = make_pipeline(audio_server(status_code=404))

        reply = await pipeline.process(voice_message())

        assert reply.text == AudioDownloadError.user_message
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_attachment_without_url(self, make_pipeline, tmp_path: Path):
        pipeline = make_pipeline()

        reply = await pipeline.process(voice_message(url=None))

        assert reply.text == AudioDownloadError.user_message
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_recognition_failure(self, make_pipeline, tmp_path: Path, transcriber: MagicMock):
        transcriber.transcribe_file.side_effect = ServiceError("salute_speech", "status 400", status=400)
        pipeline = make_pipeline()
        pipeline.transcode = fake_transcode

        reply = await pipeline.process(voice_message())

        assert reply.text == VOICE_RECOGNITION_FAILED
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_auth_failure(self, make_pipeline, tmp_path: Path, transcriber: MagicMock):
        transcriber.transcribe_file.side_effect = AuthError("salute_speech", "HTTP 401")
        pipeline = make_pipeline()
        pipeline.transcode = fake_transcode

        reply = await pipeline.process(voice_message())

        assert reply.text == VOICE_AUTH_FAILED
        assert leftovers(tmp_path) == []

    @pytest.mark.asyncio
    async def test_unexpected_error_still_cleans_up(self, make_pipeline, tmp_path: Path, transcriber: MagicMock):
        """Тест: даже непредвиденное исключение не оставляет файлов."""
        transcriber.transcribe_file.side_effect = RuntimeError("boom")
        pipeline = make_pipeline()
        pipeline.transcode = fake_transcode

        with pytest.raises(RuntimeError):
            await pipeline.process(voice_message())
        assert leftovers(tmp_path) == []


class TestFailureMessage:
    """Тесты выбора текста ошибки."""

    def test_service_unavailable_without_status(self):
        assert failure_message(ServiceError("salute_speech", "timeout")) == VOICE_SERVICE_UNAVAILABLE

    def test_pipeline_error_uses_own_message(self):
        assert failure_message(TranscoderNotFoundError("ffmpeg")) == TranscoderNotFoundError.user_message
