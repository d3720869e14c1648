"""Voice Ingestion Pipeline для MaxFlow Assistant.

Голосовое сообщение: скачать -> сконвертировать в PCM (ffmpeg) ->
распознать -> определить намерение -> создать задачу или ответить.
Временные файлы вызова удаляются на любом пути выполнения.
"""

import asyncio
import secrets
import shutil
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import httpx
from loguru import logger

from src.core.config import VoiceSettings
from src.core.constants import PCM_CHANNELS, PCM_SAMPLE_RATE
from src.core.enums import MessageSource
from src.core.models import Attachment, InboundMessage, Reply
from src.services.assistant import TaskAssistant
from src.services.speech_transcriber import SpeechTranscriber
from src.shared.errors import (
    AppException,
    AudioDownloadError,
    AuthError,
    EmptyTranscriptError,
    PipelineError,
    ServiceError,
    TranscodeError,
    TranscoderNotFoundError,
)
from src.shared.logging import LogExecutionTime

VOICE_AUTH_FAILED = (
    "❌ **Ошибка при обработке голосового сообщения**\n\n"
    "Ошибка аутентификации в SaluteSpeech.\n\n"
    "Вы можете использовать текстовые команды для создания задач."
)
VOICE_RECOGNITION_FAILED = (
    "❌ **Ошибка при обработке голосового сообщения**\n\n"
    "Не удалось распознать речь. Попробуйте записать сообщение заново.\n\n"
    "Вы можете использовать текстовые команды для создания задач."
)
VOICE_SERVICE_UNAVAILABLE = (
    "❌ **Ошибка при обработке голосового сообщения**\n\n"
    "Сервис распознавания речи временно недоступен. Попробуйте позже.\n\n"
    "Вы можете использовать текстовые команды для создания задач."
)


@dataclass(frozen=True)
class TempAudioArtifact:
    """Временные файлы одного вызова pipeline."""

    source: Path
    pcm: Path

    @property
    def paths(self) -> tuple[Path, Path]:
        return self.source, self.pcm


def failure_message(error: AppException) -> str:
    """Текст для пользователя по категории ошибки.

    Args:
        error: Доменная ошибка этапа pipeline.

    Returns:
        Сообщение пользователю.

    """
    if isinstance(error, PipelineError):
        return error.user_message
    if isinstance(error, AuthError):
        return VOICE_AUTH_FAILED
    if isinstance(error, ServiceError):
        # status есть, если сервис ответил, но не смог распознать
        return VOICE_RECOGNITION_FAILED if "status" in error.details else VOICE_SERVICE_UNAVAILABLE
    return PipelineError.user_message


class VoiceIngestionPipeline:
    """Обработка голосовых сообщений."""

    def __init__(
        self,
        transcriber: SpeechTranscriber,
        assistant: TaskAssistant,
        http_client: httpx.AsyncClient,
        config: VoiceSettings,
    ) -> None:
        """Инициализировать pipeline.

        Args:
            transcriber: Распознавание речи.
            assistant: Общий путь "намерение -> задача или ответ".
            http_client: HTTP клиент для скачивания аудио.
            config: Настройки голосовых сообщений.

        """
        self.transcriber = transcriber
        self.assistant = assistant
        self._http = http_client
        self.config = config
        self.temp_dir = Path(config.temp_dir)

    async def process(self, message: InboundMessage) -> Reply | None:
        """Обработать голосовое сообщение.

        Args:
            message: Входящее сообщение.

        Returns:
            Ровно один ответ пользователю; None, если аудио вложения нет.

        """
        audio = message.audio
        if audio is None:
            return None

        user_id = message.user_id
        logger.info("Голосовое сообщение получено", user_id=user_id)

        try:
            async with self.workspace(user_id) as artifact:
                await self.download(audio, artifact.source)
                await self.transcode(artifact.source, artifact.pcm)
                transcript = await self.transcriber.transcribe_file(artifact.pcm)
        except AppException as e:
            logger.warning(
                "Голосовое сообщение не обработано",
                user_id=user_id,
                error_code=e.code,
                error=e.message,
            )
            return Reply(text=failure_message(e))

        if not transcript:
            logger.info("Речь не распознана", user_id=user_id)
            return Reply(text=EmptyTranscriptError.user_message)

        return await self.assistant.process(user_id, transcript, MessageSource.VOICE)

    @asynccontextmanager
    async def workspace(self, user_id: int) -> AsyncIterator[TempAudioArtifact]:
        """Уникальные временные файлы вызова с гарантированным удалением.

        Args:
            user_id: ID пользователя (входит в имя файла).

        Yields:
            Пути исходного и PCM файла.

        """
        try:
            await asyncio.to_thread(self.temp_dir.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise PipelineError(message=f"Временная директория недоступна: {e}") from e

        stem = f"voice_{user_id}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"
        artifact = TempAudioArtifact(
            source=self.temp_dir / f"{stem}.ogg",
            pcm=self.temp_dir / f"{stem}.pcm",
        )
        try:
            yield artifact
        finally:
            await self.release(artifact)

    async def release(self, artifact: TempAudioArtifact) -> None:
        """Удалить временные файлы вызова.

        Ошибки удаления только логируются.
        """
        for path in artifact.paths:
            try:
                await asyncio.to_thread(path.unlink, missing_ok=True)
            except OSError as e:
                logger.warning("Не удалось удалить временный файл", path=str(path), error=str(e))

    async def download(self, audio: Attachment, target: Path) -> None:
        """Скачать аудио вложение.

        Raises:
            AudioDownloadError: Если URL нет, запрос не удался или файл не записан.

        """
        if not audio.url:
            raise AudioDownloadError(message="У аудио вложения нет URL")

        try:
            with LogExecutionTime("voice_download"):
                response = await self._http.get(
                    audio.url,
                    timeout=self.config.download_timeout,
                    follow_redirects=True,
                )
                response.raise_for_status()
                await asyncio.to_thread(target.write_bytes, response.content)
        except httpx.HTTPError as e:
            raise AudioDownloadError(message=f"Ошибка скачивания аудио: {type(e).__name__}") from e
        except OSError as e:
            raise AudioDownloadError(message=f"Не удалось записать аудио: {e}") from e

    async def transcode(self, source: Path, target: Path) -> None:
        """Сконвертировать аудио в сырой PCM (16 кГц, 16 бит, моно).

        Raises:
            TranscoderNotFoundError: Если ffmpeg не установлен.
            TranscodeError: При ненулевом коде выхода или таймауте.

        """
        binary = shutil.which(self.config.ffmpeg_bin)
        if binary is None:
            raise TranscoderNotFoundError(self.config.ffmpeg_bin)

        args = [
            binary,
            "-hide_banner",
            "-loglevel", "error",
            "-y",
            "-i", str(source),
            "-ar", str(PCM_SAMPLE_RATE),
            "-ac", str(PCM_CHANNELS),
            "-f", "s16le",
            "-acodec", "pcm_s16le",
            str(target),
        ]  # fmt: skip

        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise TranscoderNotFoundError(binary) from e

        with LogExecutionTime("voice_transcode"):
            try:
                _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.config.transcode_timeout)
            except asyncio.TimeoutError as e:
                process.kill()
                await process.wait()
                raise TranscodeError(message="Таймаут конвертации аудио") from e

        if process.returncode != 0:
            stderr_text = stderr.decode(errors="replace")[-500:] if stderr else ""
            raise TranscodeError(
                message=f"ffmpeg завершился с кодом {process.returncode}",
                details={"returncode": process.returncode, "stderr": stderr_text},
            )
