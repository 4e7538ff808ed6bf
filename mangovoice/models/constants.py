"""Constants for mangovoice.

This module centralizes all magic numbers and default values used throughout the application.
"""


# Spoken responses
ACKNOWLEDGMENT_TEXT = "Let me check on that for you."
APOLOGY_TEXT = "Sorry, I didn't quite catch that."

# Search outcome
AMBIGUOUS_RESULT_COUNT = 10  # this many results or more counts as ambiguous

# Self-healing
DEFAULT_SCREEN = "Unknown"
ACTION_WORDS = (
    "watch",
    "watched",
    "add",
    "mark",
    "remove",
    "delete",
    "move",
    "save",
    "rate",
    "actually",
    "didn't",
    "haven't",
    "unwatched",
    "seen",
)

# Router defaults (overridable via environment in the API layer)
DEFAULT_DUPLICATE_WINDOW_SEC = 10.0
DEFAULT_BACKGROUND_WORKERS = 4
MAX_PENDING_OUTCOMES = 256  # oldest unreported voice commands are dropped past this
MAX_BUFFERED_SEARCH_REQUESTS = 100  # oldest undelivered search requests are dropped past this

# OpenAI
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_OPENAI_TIMEOUT_SEC = 30.0
