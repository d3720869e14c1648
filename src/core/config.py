"""MaxFlow Assistant - Configuration.

Конфигурация приложения через Pydantic Settings.
Вложенные группы читаются из переменных окружения с разделителем "__",
например GIGACHAT__AUTH_KEY или LOG__LEVEL.
"""

from typing import Literal

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    """Настройки сервера (Uvicorn)."""

    host: str = Field(default="0.0.0.0", description="Хост")
    port: int = Field(default=8023, description="Порт")
    reload: bool = Field(default=False, description="Режим автоперезагрузки")

    @field_validator("port")
    @classmethod
    def validate_port(cls, value: int) -> int:
        """Валидация порта.

        Args:
            value: Номер порта для проверки.

        Returns:
            Проверенное значение порта.

        Raises:
            ValueError: Если порт вне допустимого диапазона.

        """
        if not 1 <= value <= 65535:
            msg = f"Порт ({value}) должен быть в диапазоне 1-65535"
            raise ValueError(msg)
        return value


class BotSettings(BaseModel):
    """Настройки бота платформы MAX."""

    token: str | None = Field(default=None, description="Токен бота")
    api_url: str = Field(
        default="https://platform-api.max.ru",
        description="Base URL Bot API",
    )
    webhook_secret: str | None = Field(
        default=None,
        description="Секрет для проверки входящих webhook запросов",
    )
    focus_minutes: int = Field(default=25, ge=1, description="Длительность фокус-сессии")
    drop_stale_updates: bool = Field(
        default=True,
        description="Пропускать события, созданные до старта процесса",
    )


class GigaChatSettings(BaseModel):
    """Настройки GigaChat API."""

    auth_key: str | None = Field(
        default=None,
        description="Авторизационный ключ (Basic) для выпуска токена",
    )
    scope: str = Field(default="GIGACHAT_API_PERS", description="OAuth scope")
    auth_url: str = Field(
        default="https://ngw.devices.sberbank.ru:9443/api/v2/oauth",
        description="Endpoint выпуска токена",
    )
    api_url: str = Field(
        default="https://gigachat.devices.sberbank.ru/api/v1/chat/completions",
        description="Endpoint chat completions",
    )
    model: str = Field(default="GigaChat", description="Модель")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Температура ответов")
    max_tokens: int = Field(default=1024, ge=1, description="Максимум токенов в ответе")

    @property
    def enabled(self) -> bool:
        """AI функции доступны только при наличии ключа."""
        return bool(self.auth_key)


class SaluteSpeechSettings(BaseModel):
    """Настройки SaluteSpeech (распознавание речи)."""

    auth_key: str | None = Field(
        default=None,
        description="Авторизационный ключ (Basic) для выпуска токена",
    )
    scope: str = Field(default="SALUTE_SPEECH_PERS", description="OAuth scope")
    auth_url: str = Field(
        default="https://ngw.devices.sberbank.ru:9443/api/v2/oauth",
        description="Endpoint выпуска токена",
    )
    api_url: str = Field(
        default="https://smartspeech.sber.ru/rest/v1/speech:recognize",
        description="Endpoint синхронного распознавания",
    )

    @property
    def enabled(self) -> bool:
        """Голосовые функции доступны только при наличии ключа."""
        return bool(self.auth_key)


class HttpSettings(BaseModel):
    """Настройки HTTP клиентов внешних сервисов."""

    timeout: float = Field(default=30.0, gt=0, description="Общий таймаут запроса в секундах")
    connect_timeout: float = Field(default=5.0, gt=0, description="Таймаут соединения в секундах")
    verify_ssl: bool = Field(
        default=False,
        description="Проверять TLS сертификаты (сервисы Сбера используют НУЦ Минцифры)",
    )


class VoiceSettings(BaseModel):
    """Настройки обработки голосовых сообщений."""

    ffmpeg_bin: str = Field(default="ffmpeg", description="Путь к ffmpeg")
    temp_dir: str = Field(default="temp", description="Директория временных аудиофайлов")
    download_timeout: float = Field(default=30.0, gt=0, description="Таймаут скачивания")
    transcode_timeout: float = Field(default=60.0, gt=0, description="Таймаут конвертации")


class SessionSettings(BaseModel):
    """Настройки хранилища диалоговых сессий."""

    backend: Literal["memory", "redis"] = Field(default="memory", description="Backend")
    ttl_seconds: int = Field(default=86400, ge=60, description="TTL сессии в Redis")


class RedisSettings(BaseModel):
    """Настройки Redis."""

    host: str = Field(default="localhost", description="Redis хост")
    port: int = Field(default=6379, description="Redis порт")
    db: int = Field(default=0, ge=0, le=15, description="Redis database index")
    password: str | None = Field(default=None, description="Redis пароль")

    @property
    def url(self) -> str:
        """URL для подключения к Redis.

        Returns:
            Строка подключения для Redis.

        """
        auth = f":{self.password}@" if self.password else ""
        return f"redis://{auth}{self.host}:{self.port}/{self.db}"


class DatabaseSettings(BaseModel):
    """Настройки хранилища задач."""

    backend: Literal["memory", "postgres"] = Field(default="memory", description="Backend")
    dsn: str | None = Field(default=None, description="DSN PostgreSQL")
    host: str = Field(default="localhost", description="Хост PostgreSQL")
    port: int = Field(default=5432, description="Порт PostgreSQL")
    name: str = Field(default="maxflow_zen", description="Имя базы")
    user: str = Field(default="postgres", description="Пользователь")
    password: str = Field(default="", description="Пароль")
    pool_min: int = Field(default=1, ge=1, description="Минимальный размер пула")
    pool_max: int = Field(default=10, ge=1, description="Максимальный размер пула")

    @field_validator("pool_max")
    @classmethod
    def validate_pool_max(cls, value: int, info: ValidationInfo) -> int:
        """Валидация максимального размера пула соединений.

        Args:
            value: Значение pool_max для проверки.
            info: Информация о валидации.

        Returns:
            Проверенное значение pool_max.

        Raises:
            ValueError: Если pool_max меньше pool_min.

        """
        if "pool_min" in info.data and value < info.data["pool_min"]:
            msg = f"pool_max ({value}) должен быть >= pool_min"
            raise ValueError(msg)
        return value

    @property
    def url(self) -> str:
        """DSN для подключения (явный dsn имеет приоритет)."""
        if self.dsn:
            return self.dsn
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


class LogSettings(BaseModel):
    """Настройки логирования."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Уровень логирования",
    )
    format: Literal["json", "text"] = Field(
        default="text",
        description="Формат логов",
    )
    file_path: str | None = Field(
        default="logs/maxflow-assistant.log",
        description="Путь к файлу логов (None - без файла)",
    )
    rotation: str = Field(default="10 MB", description="Ротация логов")
    retention: str = Field(default="10 days", description="Время хранения логов")


class Settings(BaseSettings):
    """Главные настройки приложения.

    Пример: GIGACHAT__AUTH_KEY=..., SESSIONS__BACKEND=redis
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    app_name: str = Field(default="MaxFlow Assistant", description="Название приложения")
    environment: Literal["local", "dev", "prod"] = Field(
        default="local",
        description="Окружение",
    )
    debug: bool = Field(default=False, description="Режим отладки")

    server: ServerSettings = Field(default_factory=ServerSettings)
    bot: BotSettings = Field(default_factory=BotSettings)
    gigachat: GigaChatSettings = Field(default_factory=GigaChatSettings)
    salute_speech: SaluteSpeechSettings = Field(default_factory=SaluteSpeechSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    voice: VoiceSettings = Field(default_factory=VoiceSettings)
    sessions: SessionSettings = Field(default_factory=SessionSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    log: LogSettings = Field(default_factory=LogSettings)


# Глобальный объект настроек (singleton)
settings = Settings()
