GRAM: int = 2                # substring size for partial (fuzzy) candidates

# Ranking caps
EXACT_LIMIT: int = 10
PARTIAL_LIMIT: int = 10

# Placeholder suggestion returned when the store cannot be queried
DB_ERROR_TEXT: str = "Can't access database!"

# "match all" predicate (SQL expression understood by every store)
MATCH_ALL: str = "1=1"

# /* ~~~ session behaviour ~~~ */
CLEAR_ON_SELECT: bool = False
DEDUPE_SENTINEL: bool = False   # keep the literal query even if it duplicates a suggestion
RECENT_FIRST: int = 3           # show_all(): most recently used entries listed first

# /* ~~~ voice dictation ~~~ */
DEBOUNCE_SECONDS: float = 0.4
VOICE_LOCALE: str = "ja-JP"
NOT_SUPPORTED_TEXT: str = "Voice input is not supported on this device."

# Storage
DEFAULT_DSN: str = "memory://"
TABLE_NAME_PATTERN: str = r"^[A-Za-z0-9_\-]{1,128}$"
