"""UI configuration constants.

Centralizes widget ids, texts and limits for the UI module.
"""


class LogLevel:
    """Log level constants with numeric values for comparison.

    Standard logging hierarchy: DEBUG < INFO < WARNING < ERROR
    Lower numeric value = more verbose (shows more messages).
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARNING",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        """Get the name for a log level."""
        return cls._names.get(level, "UNKNOWN")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)


# Widget ids forming the accessibility contract
WIDGET_ID = "chat-widget"
BACKDROP_ID = "chat-backdrop"
HEADER_ID = "chat-header"
TITLE_ID = "chat-widget-title"
CONTENT_ID = "chat-content"
INSTRUCTIONS_ID = "chat-widget-instructions"
LIVE_STATUS_ID = "chat-live-status"
HISTORY_ID = "chat-history"
INPUT_BAR_ID = "chat-input-bar"
SPACER_ID = "chat-safe-area-spacer"
FAB_ID = "chat-fab"

# Backdrop classes chosen by the motion preference
BACKDROP_SOLID_CLASS = "-solid"
BACKDROP_BLURRED_CLASS = "-blurred"

# Texts
WIDGET_TITLE = "Virtual Assistant"
WIDGET_SUBTITLE = "Citizen services"
INSTRUCTIONS_TEXT = (
    "Type your message and press Ctrl+J to send. "
    "Use Tab to move between controls and Escape to close the chat."
)
STATUS_ONLINE = "Online"
STATUS_TYPING = "Typing..."
STATUS_RECONNECTING = "Reconnecting..."
STATUS_OFFLINE = "Disconnected"

# Input history configuration
INPUT_HISTORY_MAX_SIZE = 100  # Maximum entries in input history

# Log panel configuration
LOG_TIMESTAMP_FORMAT = "%H:%M:%S"
LOG_MAX_MESSAGE_LENGTH = 500  # Characters before truncating log messages
