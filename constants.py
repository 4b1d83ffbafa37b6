# Constants and configuration defaults for Chinese AI Coach.

APP_TITLE = "Chinese AI Coach"

# OpenAI-compatible API defaults (single source of truth for config.py / UI label)
DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"

# Prompt contract versions: v1 legacy definitions schema, v2/v3 meanings schema,
# v4 meanings schema with candidate disambiguation.
PROMPT_VERSIONS = ["v1", "v2", "v3", "v4"]
DEFAULT_PROMPT_VERSION = "v4"
DEFAULT_MODEL_BY_PROMPT_VERSION = {
    "v1": "gpt-4o",
    "v2": "gpt-4o",
    "v3": "gpt-4o-mini",
    "v4": "gpt-4o-mini",
}

# Generation calls are unbounded: no client timeout, no SDK retries.
OPENAI_MAX_RETRIES = 0
GATEWAY_REQUEST_TIMEOUT_SECONDS = None

# Gateway HTTP surface
GATEWAY_PATH = "/api/generate"
GATEWAY_LEGACY_PATH = "/.netlify/functions/generate"
GATEWAY_HOST = "127.0.0.1"
GATEWAY_PORT = 8888
ERROR_WORD_REQUIRED = "Word is required"
ERROR_GENERATION_FAILED = "Failed to generate content"

# Response shapes
RESPONSE_TYPE_CANDIDATES = "candidates"
RESPONSE_TYPE_DETAIL = "detail"
CANDIDATE_USAGES = ["口", "書", "口・書"]
MIN_RECOMMENDATION = 1
MAX_RECOMMENDATION = 3

# Background candidate pre-fetch: one candidate every N seconds.
PREFETCH_INTERVAL_SECONDS = 2.0

# Persistence
VOCAB_TABLE = "vocabulary"
DEFAULT_VOCAB_STORE = "sqlite"
DEFAULT_VOCAB_DB_PATH = "vocabulary.db"
DEFAULT_SHEETS_WORKSHEET = "vocabulary"
SHEETS_HEADER = ["id", "word", "data", "user_id", "created_at"]

# Max input length guard for a single lookup
MAX_LOOKUP_INPUT_LENGTH = 100

# User-facing notices (one generic message per failed action)
NOTICE_INVALID_INPUT = "調べたい単語を入力してください。"
NOTICE_GENERATION_FAILED = "解説の生成に失敗しました。"
NOTICE_SAVE_FAILED = "保存に失敗しました。"
NOTICE_SAVED = "単語帳に保存しました！"
NOTICE_DELETE_FAILED = "削除に失敗しました。"
NOTICE_LIST_FAILED = "単語帳の読み込みに失敗しました。"
NOTICE_NOTHING_TO_SAVE = "保存する解説がありません。"
NOTICE_BUSY = "まだ解説を生成中です。少し待ってからもう一度お試しください。"

DEFAULT_SESSION_STATE = {
    'view': 'search',
    'search_word': "",
    'confirm_delete_id': None,
}
