"""
Validation rules for reflections, chat messages and context switches.

Pure functions: no state, no I/O. The keyword analysis is a client-side hint
shown before submission; the remote evaluation remains authoritative.
"""

import random
import re
import string
import time
from typing import Optional

from reflection_coach.core.constants import (
    CHAT_MESSAGE_MAX_LENGTH,
    CHAT_MESSAGE_MIN_LENGTH,
    FEELING_INDICATORS,
    HAPPENED_INDICATORS,
    ID_RANDOM_SUFFIX_LENGTH,
    NEXT_INDICATORS,
    REFLECTION_MAX_LENGTH,
    REFLECTION_MAX_SENTENCES,
    REFLECTION_MIN_LENGTH,
    REFLECTION_MIN_SENTENCES,
)
from reflection_coach.models.context import AppContext
from reflection_coach.models.reflection import RequirementAnalysis

_SENTENCE_TERMINATORS = re.compile(r"[.!?]")
_ID_ALPHABET = string.ascii_lowercase + string.digits


def _indicator_pattern(words: list[str]) -> re.Pattern:
    alternatives = "|".join(r"\s+".join(map(re.escape, word.split())) for word in words)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_HAPPENED_PATTERN = _indicator_pattern(HAPPENED_INDICATORS)
_FEELING_PATTERN = _indicator_pattern(FEELING_INDICATORS)
_NEXT_PATTERN = _indicator_pattern(NEXT_INDICATORS)


# =============================================================================
# Sanitizers
# =============================================================================


def sanitize_reflection_text(text: str) -> str:
    return text.strip()


def sanitize_chat_message(text: str) -> str:
    return text.strip()


# =============================================================================
# Reflection rules
# =============================================================================


def is_valid_reflection_text(text: str) -> bool:
    """Trimmed length must be within [10, 1000]."""
    length = len(text.strip())
    return REFLECTION_MIN_LENGTH <= length <= REFLECTION_MAX_LENGTH


def count_sentences(text: str) -> int:
    """Count non-empty segments between '.', '!' and '?'."""
    return sum(1 for segment in _SENTENCE_TERMINATORS.split(text) if segment.strip())


def is_valid_sentence_count(text: str) -> bool:
    return REFLECTION_MIN_SENTENCES <= count_sentences(text) <= REFLECTION_MAX_SENTENCES


def get_reflection_validation_error(text: str) -> Optional[str]:
    """
    Return the message of the first violated rule, or None.

    Length is checked before sentence count so a too-short text reports its
    length rather than its sentences.
    """
    length = len(text.strip())
    if length < REFLECTION_MIN_LENGTH:
        return f"Reflection must be at least {REFLECTION_MIN_LENGTH} characters long."
    if length > REFLECTION_MAX_LENGTH:
        return f"Reflection must be {REFLECTION_MAX_LENGTH} characters or less."

    count = count_sentences(text)
    if not REFLECTION_MIN_SENTENCES <= count <= REFLECTION_MAX_SENTENCES:
        noun = "sentence" if count == 1 else "sentences"
        return (
            f"Reflection must have {REFLECTION_MIN_SENTENCES}-{REFLECTION_MAX_SENTENCES} "
            f"sentences. You have {count} {noun}."
        )
    return None


def analyze_reflection_requirements(text: str) -> RequirementAnalysis:
    """Check which rubric dimensions the text appears to cover."""
    has_happened = bool(_HAPPENED_PATTERN.search(text))
    has_feeling = bool(_FEELING_PATTERN.search(text))
    has_next = bool(_NEXT_PATTERN.search(text))
    return RequirementAnalysis(
        has_happened=has_happened,
        has_feeling=has_feeling,
        has_next=has_next,
        completeness=sum((has_happened, has_feeling, has_next)),
    )


# =============================================================================
# Chat and context rules
# =============================================================================


def is_valid_chat_message(text: str) -> bool:
    length = len(text.strip())
    return CHAT_MESSAGE_MIN_LENGTH <= length <= CHAT_MESSAGE_MAX_LENGTH


def is_valid_context_switch(target: AppContext, has_reflection: bool) -> bool:
    """Feedback and Chat need a reflection; Write/Edit is always reachable."""
    if target == AppContext.WRITE_EDIT:
        return True
    return has_reflection


# =============================================================================
# IDs
# =============================================================================


def generate_id(prefix: str) -> str:
    """Time-based ID with a short random suffix. Unique within one profile."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=ID_RANDOM_SUFFIX_LENGTH))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def generate_reflection_id() -> str:
    return generate_id("reflection")


def generate_chat_session_id() -> str:
    return generate_id("chat")


def generate_message_id() -> str:
    return generate_id("msg")
