"""Shared errors module.

Система обработки ошибок приложения.
"""

from src.shared.errors.base import AppException
from src.shared.errors.context import get_trace_id, set_trace_id, trace_id_var
from src.shared.errors.decorators import safe_deco
from src.shared.errors.domain_errors import (
    AudioDownloadError,
    AuthError,
    EmptyTranscriptError,
    InvalidDateError,
    InvalidHoursError,
    InvalidUpdateError,
    PastDateError,
    PipelineError,
    ServiceError,
    SessionExpiredError,
    StateError,
    StepMismatchError,
    StorageError,
    TranscodeError,
    TranscoderNotFoundError,
    ValidationError,
    WebhookForbiddenError,
)
from src.shared.errors.handlers import setup_exception_handlers
from src.shared.errors.mapping import ExceptionMapper, map_exception
from src.shared.errors.schemas import ErrorResponse

__all__ = [
    # Base
    "AppException",
    # Context
    "trace_id_var",
    "get_trace_id",
    "set_trace_id",
    # Domain errors
    "ValidationError",
    "InvalidHoursError",
    "InvalidDateError",
    "PastDateError",
    "AuthError",
    "ServiceError",
    "PipelineError",
    "AudioDownloadError",
    "TranscoderNotFoundError",
    "TranscodeError",
    "EmptyTranscriptError",
    "StateError",
    "StepMismatchError",
    "SessionExpiredError",
    "StorageError",
    "InvalidUpdateError",
    "WebhookForbiddenError",
    # Mapping
    "ExceptionMapper",
    "map_exception",
    # Handlers
    "setup_exception_handlers",
    # Schemas
    "ErrorResponse",
    # Decorators
    "safe_deco",
]
