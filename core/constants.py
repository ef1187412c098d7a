# Source Settings
DEFAULT_STATE_FILE = "./state.json"
DEFAULT_ITEM_BASE_URL = "https://archiveofourown.org/works/"
DEFAULT_USER_AGENT = "Mozilla/5.0 AO3DiscordNotifier"
CACHE_BUSTER_PARAM = "_"

# Fetcher Settings
DEFAULT_FETCH_MAX_ATTEMPTS = 5
DEFAULT_FETCH_TIMEOUT_BASE = 10.0  # Seconds, multiplied by attempt number
DEFAULT_FETCH_TIMEOUT_CAP = 30.0
DEFAULT_FETCH_BACKOFF_BASE = 2.0  # Seconds, multiplied by attempt number
DEFAULT_FETCH_JITTER_MAX = 1.0

# 429 plus server and edge-proxy (Cloudflare 52x) failures
RETRYABLE_STATUS_CODES = frozenset(
    {429, 500, 502, 503, 504, 520, 521, 522, 523, 524, 525}
)

# Enrichment Settings
DEFAULT_ENRICH_CONCURRENCY = 2
DEFAULT_ENRICH_MAX_ENTRIES = 20
DEFAULT_ENRICH_DELAY = 0.3  # Seconds after each completed item fetch

# Notification Settings
DEFAULT_DISCORD_BATCH_THRESHOLD = 2
DEFAULT_DISCORD_MAX_LINES_PER_MESSAGE = 10
DEFAULT_DISCORD_MESSAGE_DELAY = 0.4
DEFAULT_DISCORD_MAX_ATTEMPTS = 5
DEFAULT_DISCORD_RETRY_MARGIN = 0.1
DEFAULT_DISCORD_RETRY_AFTER = 1.0  # Used when a 429 carries no usable hint

# Message Text
ENTRY_GLYPH = "📚"
BATCH_HEADER = "📚 New fics on AO3"
EMPTY_LISTING_ALERT = "⚠️ AO3 notifier ran but found 0 works"
UNKNOWN_AUTHOR = "Unknown"
DISCORD_MAX_MESSAGE_LENGTH = 2000  # Webhook content limit

# Default Logging Values
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FILE = ""  # Empty disables the file handler
DEFAULT_LOG_FORMAT = "text"  # text or json
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
DEFAULT_LOG_BACKUP_COUNT = 5
DEFAULT_LOG_TIMEZONE = "UTC"
