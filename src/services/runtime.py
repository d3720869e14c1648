"""Сборка компонентов бота.

Создаёт HTTP клиент, хранилища, клиенты GigaChat и SaluteSpeech (только при
наличии ключей), сервисы и роутер.
"""

from dataclasses import dataclass, field

import httpx
from loguru import logger
from redis.asyncio import Redis

from src.bot.handlers import CommandHandlers
from src.core.config import Settings
from src.core.models import utcnow
from src.providers.base import build_http_client
from src.providers.gigachat import GigaChatClient
from src.providers.salute_speech import SaluteSpeechClient
from src.services.assistant import TaskAssistant
from src.services.deadline_resolver import deadline_resolver
from src.services.dialogue import SessionStateMachine
from src.services.dispatcher import EventDispatcher
from src.services.focus_timer import FocusTimerService
from src.services.intent_extractor import IntentExtractor
from src.services.messenger import MaxMessenger, Messenger
from src.services.router import DialogueRouter
from src.services.session_store import InMemorySessionStore, RedisSessionStore, SessionStore
from src.services.speech_transcriber import SpeechTranscriber
from src.services.task_store import InMemoryTaskStore, PostgresTaskStore, TaskStore
from src.services.voice_pipeline import VoiceIngestionPipeline
from src.shared.errors import StorageError

DRAIN_TIMEOUT_SECONDS = 30.0


@dataclass
class BotRuntime:
    """Собранные компоненты бота."""

    router: DialogueRouter
    dispatcher: EventDispatcher
    focus: FocusTimerService
    sessions: SessionStore
    tasks: TaskStore
    http_client: httpx.AsyncClient | None = None
    redis: Redis | None = None
    features: dict[str, bool] = field(default_factory=dict)

    async def close(self) -> None:
        """Остановить компоненты.

        Сначала таймеры и обработка событий, затем соединения.
        """
        await self.focus.shutdown()
        await self.dispatcher.drain(timeout=DRAIN_TIMEOUT_SECONDS)

        if self.http_client is not None:
            await self.http_client.aclose()
            logger.info("HTTP клиент закрыт")

        if isinstance(self.tasks, PostgresTaskStore):
            await self.tasks.close()

        if self.redis is not None:
            try:
                await self.redis.aclose()
                logger.info("Redis отключен")
            except Exception as e:
                logger.error("Ошибка при отключении Redis", error=str(e))


def build_router(
    messenger: Messenger,
    sessions: SessionStore,
    tasks: TaskStore,
    focus: FocusTimerService,
    config: Settings,
    gigachat: GigaChatClient | None = None,
    salute_speech: SaluteSpeechClient | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> DialogueRouter:
    """Собрать роутер из готовых зависимостей.

    Args:
        messenger: Отправка ответов.
        sessions: Хранилище сессий.
        tasks: Хранилище задач.
        focus: Сервис фокус-таймеров.
        config: Настройки приложения.
        gigachat: Клиент GigaChat (None - AI отключён).
        salute_speech: Клиент SaluteSpeech (None - голос отключён).
        http_client: HTTP клиент для скачивания аудио.

    Returns:
        Роутер событий.

    """
    dialogue = SessionStateMachine(sessions, tasks, deadline_resolver)
    commands = CommandHandlers(
        dialogue,
        tasks,
        focus,
        focus_minutes=config.bot.focus_minutes,
        ai_enabled=gigachat is not None,
    )

    assistant = None
    if gigachat is not None:
        assistant = TaskAssistant(IntentExtractor(gigachat), tasks, deadline_resolver)

    voice = None
    if salute_speech is not None and assistant is not None and http_client is not None:
        voice = VoiceIngestionPipeline(SpeechTranscriber(salute_speech), assistant, http_client, config.voice)
    elif salute_speech is not None:
        logger.warning("Голосовые сообщения отключены: для них нужен GigaChat")

    return DialogueRouter(
        messenger,
        dialogue,
        commands,
        assistant=assistant,
        voice=voice,
        started_at=utcnow() if config.bot.drop_stale_updates else None,
    )


async def connect_sessions(config: Settings) -> tuple[SessionStore, Redis | None]:
    """Создать хранилище сессий по настройкам."""
    if config.sessions.backend == "memory":
        return InMemorySessionStore(), None

    client = Redis.from_url(config.redis.url, decode_responses=False)
    try:
        await client.ping()
    except Exception as e:
        await client.aclose()
        raise StorageError(message=f"Не удалось подключиться к Redis: {e}") from e

    logger.info("Redis подключен", host=config.redis.host, port=config.redis.port)
    return RedisSessionStore(client, config.sessions.ttl_seconds), client


async def connect_tasks(config: Settings) -> TaskStore:
    """Создать хранилище задач по настройкам."""
    if config.database.backend == "memory":
        logger.warning("Задачи хранятся в памяти и будут потеряны при перезапуске")
        return InMemoryTaskStore()

    store = PostgresTaskStore(config.database)
    await store.connect()
    return store


async def build_runtime(config: Settings) -> BotRuntime:
    """Собрать все компоненты бота.

    Сессии, оставшиеся от предыдущего запуска, удаляются.

    Raises:
        StorageError: Если хранилище недоступно.

    """
    http_client = build_http_client(config.http)
    redis_client: Redis | None = None
    tasks: TaskStore | None = None

    try:
        sessions, redis_client = await connect_sessions(config)
        tasks = await connect_tasks(config)
        cleared = await sessions.clear()
        logger.info("Сессии предыдущего запуска удалены", count=cleared)
    except Exception:
        await http_client.aclose()
        if isinstance(tasks, PostgresTaskStore):
            await tasks.close()
        if redis_client is not None:
            await redis_client.aclose()
        raise

    messenger = MaxMessenger(config.bot, http_client)
    focus = FocusTimerService(messenger, duration_seconds=config.bot.focus_minutes * 60)

    gigachat = GigaChatClient(config.gigachat, http_client) if config.gigachat.enabled else None
    salute_speech = SaluteSpeechClient(config.salute_speech, http_client) if config.salute_speech.enabled else None

    router = build_router(
        messenger,
        sessions,
        tasks,
        focus,
        config,
        gigachat=gigachat,
        salute_speech=salute_speech,
        http_client=http_client,
    )
    features = {"ai": router.assistant is not None, "voice": router.voice is not None}
    logger.info("Компоненты бота собраны", **features)

    return BotRuntime(
        router=router,
        dispatcher=EventDispatcher(),
        focus=focus,
        sessions=sessions,
        tasks=tasks,
        http_client=http_client,
        redis=redis_client,
        features=features,
    )
