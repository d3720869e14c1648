"""Speech Transcriber для MaxFlow Assistant."""

import asyncio
from pathlib import Path

from loguru import logger

from src.providers.salute_speech import SaluteSpeechClient


class SpeechTranscriber:
    """Расшифровка PCM аудио через SaluteSpeech."""

    def __init__(self, client: SaluteSpeechClient) -> None:
        self.client = client

    async def transcribe(self, pcm: bytes) -> str:
        """Расшифровать PCM аудио (16 кГц, 16 бит, моно).

        Args:
            pcm: Сырые PCM данные.

        Returns:
            Первый непустой вариант расшифровки или "" если таких нет.

        Raises:
            AuthError: Если выпустить токен не удалось.
            ServiceError: При ошибке запроса или неуспешном статусе.

        """
        candidates = await self.client.recognize(pcm)
        transcript = next((c.strip() for c in candidates if c and c.strip()), "")

        logger.info(
            "Речь распознана" if transcript else "Сервис не вернул расшифровку",
            candidates=len(candidates),
            transcript_length=len(transcript),
        )
        return transcript

    async def transcribe_file(self, path: Path) -> str:
        """Расшифровать PCM файл.

        Args:
            path: Путь к файлу с сырыми PCM данными.

        Returns:
            Расшифровка (см. transcribe).

        """
        pcm = await asyncio.to_thread(path.read_bytes)
        return await self.transcribe(pcm)
