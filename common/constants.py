"""Project-wide constants (ledger namespace, replay window, size limits)."""

NAMESPACE_ID: str = "hive-drive"
APP_TAG: str = "hive_drive"

CUSTOM_JSON_OP: str = "custom_json"

POSTING_ROLE: str = "posting"
PUBLIC_KEY_PREFIX: str = "LDK"

ACCOUNT_ID_PATTERN: str = r"^[a-z0-9.-]{3,16}$"

DEFAULT_HISTORY_WINDOW: int = 100

CONTENT_INLINE_LIMIT: int = 8192  # bytes; larger files carry no inline content

EVENT_FILE_METADATA: str = "file_metadata"
EVENT_FILE_STAR: str = "file_star"
EVENT_FILE_DELETE: str = "file_delete"
EVENT_FILE_SHARE: str = "file_share"

EVENT_TYPES = (
    EVENT_FILE_METADATA,
    EVENT_FILE_STAR,
    EVENT_FILE_DELETE,
    EVENT_FILE_SHARE,
)
