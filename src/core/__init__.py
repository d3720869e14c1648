"""MaxFlow Assistant - Core module.

Ядро приложения: конфигурация, константы, перечисления, доменные модели.
"""

from src.core.config import settings
from src.core.enums import DialogueStep, MessageSource, Priority

__all__ = [
    "settings",
    "DialogueStep",
    "MessageSource",
    "Priority",
]
