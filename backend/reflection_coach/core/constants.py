"""
Application constants for Reflection Coach.

Centralizes validation limits, rubric keywords and workflow values used
across the stores and the remote evaluation/chat boundaries.
"""

# Reflection text rules
REFLECTION_MIN_LENGTH = 10
REFLECTION_MAX_LENGTH = 1000
REFLECTION_MIN_SENTENCES = 3
REFLECTION_MAX_SENTENCES = 4

# Chat message rules
CHAT_MESSAGE_MIN_LENGTH = 1
CHAT_MESSAGE_MAX_LENGTH = 2000

# Chat context windows
CHAT_HISTORY_WINDOW = 10  # Messages sent with each chat request
CHAT_PROMPT_HISTORY_TURNS = 5  # Turns rendered into the coaching prompt
CHAT_FALLBACK_MESSAGE = "Sorry, I had trouble responding. Please try again."

# Scoring
PASSING_SCORE = 75
DISPLAY_SCORE_BOOST = 15
MAX_SCORE = 100
EVALUATION_REMARK_MAX_WORDS = 30

# Duplicate detection (Jaccard over words longer than 2 characters)
SIMILARITY_THRESHOLD = 0.6
SIMILARITY_MIN_WORD_LENGTH = 3

# ID generation
ID_RANDOM_SUFFIX_LENGTH = 9

# Client-side rubric hints (heuristic only; the remote evaluation is authoritative)
HAPPENED_INDICATORS = [
    "today",
    "went",
    "did",
    "happened",
    "was",
    "had",
    "saw",
    "made",
    "played",
    "learned",
    "visited",
]
FEELING_INDICATORS = [
    "felt",
    "feel",
    "feeling",
    "happy",
    "sad",
    "excited",
    "angry",
    "nervous",
    "proud",
    "worried",
    "scared",
    "glad",
    "tired",
    "bored",
]
NEXT_INDICATORS = [
    "tomorrow",
    "will",
    "plan",
    "next",
    "going to",
    "want to",
    "hope",
    "try",
]

# Rate limits for remote-calling endpoints
REMOTE_CALL_RATE_LIMIT = "20/minute"

# Default profile when the client sends no X-Profile-ID header
DEFAULT_PROFILE_ID = "default"
# Profile ids double as storage key segments
PROFILE_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"
