"""Domain errors.

Доменные исключения приложения. Каждое исключение несёт user_message -
текст, который бот отправляет пользователю вместо технических деталей.
"""

from src.shared.errors.base import AppException


class ValidationError(AppException):
    """Ошибка валидации пользовательского ввода."""

    status_code = 422
    code = "VALIDATION_ERROR"
    user_message = "❌ **Неверный формат!** Попробуйте еще раз."


class InvalidHoursError(ValidationError):
    """Некорректное количество часов."""

    user_message = (
        "❌ **Неверный формат!** Пожалуйста, введите целое положительное число "
        "(количество часов):\n\n_Для отмены введите /quit_"
    )

    def __init__(self, raw: str) -> None:
        """Инициализация исключения.

        Args:
            raw: Исходный текст пользователя.

        """
        super().__init__(message=f"Некорректное количество часов: '{raw}'", details={"input": raw})


class InvalidDateError(ValidationError):
    """Некорректная дата."""

    user_message = (
        "❌ **Неверный формат даты!**\n\nИспользуйте формат:\n"
        "• `ГГГГ-ММ-ДД` (например: 2024-12-31)\n"
        "• `ДД.ММ.ГГГГ` (например: 31.12.2024)\n\n_Для отмены введите /quit_"
    )

    def __init__(self, raw: str) -> None:
        """Инициализация исключения.

        Args:
            raw: Исходный текст пользователя.

        """
        super().__init__(message=f"Некорректная дата: '{raw}'", details={"input": raw})


class PastDateError(ValidationError):
    """Дата дедлайна не в будущем."""

    user_message = (
        "❌ **Дата должна быть в будущем!** Пожалуйста, введите корректную дату:"
        "\n\n_Для отмены введите /quit_"
    )

    def __init__(self, raw: str) -> None:
        """Инициализация исключения.

        Args:
            raw: Исходный текст пользователя.

        """
        super().__init__(message=f"Дата в прошлом: '{raw}'", details={"input": raw})


class AuthError(AppException):
    """Не удалось получить токен доступа внешнего сервиса."""

    status_code = 401
    code = "AUTH_ERROR"
    user_message = (
        "❌ **AI-функции временно недоступны**\n\n"
        "Не удалось авторизоваться во внешнем сервисе. Попробуйте позже "
        "или используйте команду /task для ручного создания задачи."
    )

    def __init__(self, service: str, reason: str | None = None) -> None:
        """Инициализация исключения.

        Args:
            service: Название внешнего сервиса.
            reason: Причина ошибки.

        """
        message = f"Ошибка аутентификации в сервисе '{service}'"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"service": service, "reason": reason})


class ServiceError(AppException):
    """Внешний сервис вернул ошибку."""

    status_code = 502
    code = "SERVICE_ERROR"
    user_message = (
        "❌ **Ошибка при обращении к AI**\n\n"
        "Сервис временно недоступен. Попробуйте позже или используйте обычные команды."
    )

    def __init__(
        self,
        service: str,
        reason: str | None = None,
        status: int | None = None,
    ) -> None:
        """Инициализация исключения.

        Args:
            service: Название внешнего сервиса.
            reason: Причина ошибки.
            status: HTTP статус ответа (если был).

        """
        message = f"Сервис '{service}' вернул ошибку"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message,
            details={"service": service, "reason": reason, "status": status},
        )


class PipelineError(AppException):
    """Ошибка обработки голосового сообщения."""

    status_code = 500
    user_message = (
        "❌ **Ошибка при обработке голосового сообщения**\n\n"
        "Вы можете использовать текстовые команды для создания задач."
    )


class AudioDownloadError(PipelineError):
    """Не удалось скачать голосовое сообщение."""

    user_message = (
        "❌ **Не удалось загрузить голосовое сообщение**\n\n"
        "Попробуйте отправить его еще раз или используйте текстовые команды."
    )


class TranscoderNotFoundError(PipelineError):
    """Конвертер аудио (ffmpeg) не установлен."""

    status_code = 503
    user_message = (
        "❌ **Голосовые сообщения временно недоступны**\n\n"
        "FFmpeg не установлен. Обратитесь к администратору.\n\n"
        "Вы можете использовать текстовые команды для создания задач."
    )

    def __init__(self, binary: str) -> None:
        """Инициализация исключения.

        Args:
            binary: Имя или путь к бинарнику конвертера.

        """
        super().__init__(message=f"Конвертер '{binary}' не найден", details={"binary": binary})


class TranscodeError(PipelineError):
    """Не удалось сконвертировать аудио."""

    user_message = (
        "❌ **Не удалось обработать аудио**\n\n"
        "Попробуйте записать сообщение заново или используйте текстовые команды."
    )


class EmptyTranscriptError(PipelineError):
    """Речь не распознана."""

    status_code = 200
    user_message = (
        "❌ **Не удалось распознать речь**\n\n"
        "Попробуйте:\n"
        "• Говорить четче и громче\n"
        "• Записать сообщение в тихом месте\n"
        "• Использовать текстовые команды"
    )


class StateError(AppException):
    """Некорректное состояние диалога."""

    status_code = 409
    user_message = "Сессия истекла. Начните добавление задачи заново."


class SessionExpiredError(StateError):
    """Сессия создания задачи не найдена."""

    def __init__(self, user_id: int) -> None:
        """Инициализация исключения.

        Args:
            user_id: ID пользователя.

        """
        super().__init__(
            message=f"Нет активной сессии у пользователя {user_id}",
            details={"user_id": user_id},
        )


class StepMismatchError(StateError):
    """Кнопка не соответствует текущему шагу диалога."""

    user_message = "Эта кнопка уже неактуальна. Ответьте на текущий вопрос."

    def __init__(self, user_id: int, step: str, action: str) -> None:
        """Инициализация исключения.

        Args:
            user_id: ID пользователя.
            step: Текущий шаг диалога.
            action: Нажатое действие.

        """
        super().__init__(
            message=f"Действие '{action}' недоступно на шаге '{step}'",
            details={"user_id": user_id, "step": step, "action": action},
        )


class StorageError(AppException):
    """Хранилище недоступно."""

    status_code = 503
    user_message = "❌ Не удалось сохранить данные. Попробуйте позже."


class InvalidUpdateError(AppException):
    """Некорректное событие от платформы."""

    status_code = 400
    code = "INVALID_UPDATE"


class WebhookForbiddenError(AppException):
    """Неверный секрет webhook."""

    status_code = 403
