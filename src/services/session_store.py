"""Session Store для MaxFlow Assistant.

Хранилище диалоговых сессий создания задач.

Redis Schema (TTL 24h):
    dialogue:{user_id}      -> String (JSON сессии: step, draft, updated_at)
"""

from typing import Protocol, runtime_checkable

import orjson
from loguru import logger
from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis

from src.core.constants import REDIS_DIALOGUE_PREFIX
from src.core.models import Session, utcnow
from src.shared.errors import safe_deco


@runtime_checkable
class SessionStore(Protocol):
    """Интерфейс хранилища сессий (одна сессия на пользователя)."""

    async def get(self, user_id: int) -> Session | None:
        """Получить сессию пользователя."""
        ...

    async def set(self, session: Session) -> None:
        """Сохранить сессию (заменяет существующую)."""
        ...

    async def delete(self, user_id: int) -> None:
        """Удалить сессию пользователя."""
        ...

    async def clear(self) -> int:
        """Удалить все сессии и вернуть их количество."""
        ...


class InMemorySessionStore:
    """Хранилище сессий в памяти процесса."""

    def __init__(self) -> None:
        self._sessions: dict[int, Session] = {}

    async def get(self, user_id: int) -> Session | None:
        session = self._sessions.get(user_id)
        # Копия, чтобы изменения вне store не протекали без set()
        return session.model_copy(deep=True) if session else None

    async def set(self, session: Session) -> None:
        session.updated_at = utcnow()
        self._sessions[session.user_id] = session.model_copy(deep=True)

    async def delete(self, user_id: int) -> None:
        self._sessions.pop(user_id, None)

    async def clear(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        return count


class RedisSessionStore:
    """Хранилище сессий в Redis с TTL на ключ."""

    SOURCE = "redis"

    def __init__(self, redis_client: Redis, ttl_seconds: int) -> None:
        """Инициализировать Session Store.

        Args:
            redis_client: Async Redis client
            ttl_seconds: Время жизни брошенной сессии

        """
        self.redis = redis_client
        self.ttl = ttl_seconds

    @staticmethod
    def _key(user_id: int) -> str:
        return f"{REDIS_DIALOGUE_PREFIX}{user_id}"

    @safe_deco(SOURCE)
    async def get(self, user_id: int) -> Session | None:
        """Получить сессию.

        Args:
            user_id: ID пользователя

        Returns:
            Сессия или None, если не найдена или повреждена

        """
        key = self._key(user_id)
        data = await self.redis.get(key)
        if not data:
            return None

        try:
            return Session.model_validate(orjson.loads(data))
        except (orjson.JSONDecodeError, PydanticValidationError) as e:
            logger.warning("Повреждённая сессия удалена", user_id=user_id, error=str(e))
            await self.redis.delete(key)
            return None

    @safe_deco(SOURCE)
    async def set(self, session: Session) -> None:
        """Сохранить сессию с продлением TTL.

        Args:
            session: Сессия пользователя

        """
        session.updated_at = utcnow()
        payload = orjson.dumps(session.model_dump(mode="json"))
        await self.redis.setex(self._key(session.user_id), self.ttl, payload)

        logger.debug("Session сохранена", user_id=session.user_id, step=session.step.value)

    @safe_deco(SOURCE)
    async def delete(self, user_id: int) -> None:
        """Удалить сессию.

        Args:
            user_id: ID пользователя

        """
        await self.redis.delete(self._key(user_id))
        logger.debug("Session удалена", user_id=user_id)

    @safe_deco(SOURCE)
    async def clear(self) -> int:
        """Удалить все диалоговые сессии (при старте процесса).

        Returns:
            Количество удалённых сессий

        """
        keys = [key async for key in self.redis.scan_iter(match=f"{REDIS_DIALOGUE_PREFIX}*")]
        if not keys:
            return 0

        deleted = await self.redis.delete(*keys)
        logger.info("Диалоговые сессии очищены", count=deleted)
        return int(deleted)
