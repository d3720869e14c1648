"""Константы для MaxFlow Assistant.

Централизованное хранилище всех магических чисел и строк.
"""

# === Токены внешних сервисов ===
TOKEN_VALIDITY_SECONDS = 30 * 60  # сервис выдаёт токен на 30 минут
TOKEN_REFRESH_SKEW_SECONDS = 5 * 60
RQUID_HEADER = "RqUID"

# === GigaChat ===
INTENT_TEMPERATURE = 0.3
COMPLETION_CHOICES = 1

# === Каноничный PCM для SaluteSpeech ===
PCM_SAMPLE_RATE = 16000
PCM_CHANNELS = 1
PCM_SAMPLE_FORMAT = "s16"
PCM_CONTENT_TYPE = "audio/x-pcm;bit=16;rate=16000"
SPEECH_STATUS_OK = 200

# === Диалог ===
QUIT_COMMAND = "/quit"
DEFAULT_PRIORITY = "medium"
DEFAULT_STATS_WINDOW_DAYS = 7
TASKS_PAGE_SIZE = 10
TITLE_PREVIEW_LENGTH = 30
MAX_DEADLINE_HOURS = 24 * 365 * 10

# === Redis Keys Prefixes ===
REDIS_DIALOGUE_PREFIX = "dialogue:"

# === Callback payloads ===
CB_MENU_MAIN = "menu:main"
CB_HELP = "help:show"
CB_TASK_CREATE = "task:create"
CB_TASK_CANCEL = "task:cancel"
CB_TASKS_LIST = "tasks:list"
CB_STATS_SHOW = "stats:show"
CB_STATS_CLEAR = "stats:clear"
CB_FOCUS_START = "focus:start"
CB_AI_CREATE_TASK = "ai:create_task"
CB_AI_ASK = "ai:ask"
CB_PRIORITY_PREFIX = "priority:"
CB_DEADLINE_PREFIX = "deadline:"
CB_TASK_VIEW_PREFIX = "task:view:"
CB_TASK_COMPLETE_PREFIX = "task:complete:"
CB_TASK_DELETE_PREFIX = "task:delete:"

# === Webhook ===
WEBHOOK_SECRET_HEADER = "X-Max-Bot-Api-Secret"
