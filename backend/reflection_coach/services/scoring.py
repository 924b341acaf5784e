"""
Score presentation and duplicate-submission detection.

Both helpers are advisory and synchronous. They never change a stored
score or block a submission.
"""

import re
from typing import Iterable, Optional, Union

from reflection_coach.core.constants import (
    DISPLAY_SCORE_BOOST,
    MAX_SCORE,
    PASSING_SCORE,
    SIMILARITY_MIN_WORD_LENGTH,
    SIMILARITY_THRESHOLD,
)
from reflection_coach.models.evaluation import (
    EvaluationStatus,
    PastReflection,
    SimilarityWarning,
    StructuredResponse,
)
from reflection_coach.models.reflection import ReflectionStatus

_NON_WORD = re.compile(r"[^\w\s]")

Number = Union[int, float]


def get_display_score(actual_score: Number) -> Number:
    """
    Boost passing scores shown to students.

    Scores of 75 or more are shown 15 points higher (capped at 100) to build
    confidence for English-language learners. Lower scores are shown as-is.
    """
    if actual_score >= PASSING_SCORE:
        return min(MAX_SCORE, actual_score + DISPLAY_SCORE_BOOST)
    return actual_score


def status_for_evaluation(response: StructuredResponse) -> ReflectionStatus:
    """Reflection status after a successful evaluation."""
    if response.status == EvaluationStatus.EXCELLENT:
        return ReflectionStatus.PASSED
    return ReflectionStatus.IN_PROGRESS


def _normalize_words(text: str) -> set[str]:
    words = _NON_WORD.sub(" ", text.lower()).split()
    return {word for word in words if len(word) >= SIMILARITY_MIN_WORD_LENGTH}


def calculate_text_similarity(text1: str, text2: str) -> float:
    """Jaccard similarity of the two texts' word sets, in [0, 1]."""
    if not text1 or not text2:
        return 0.0

    words1 = _normalize_words(text1)
    words2 = _normalize_words(text2)
    if not words1 or not words2:
        return 0.0

    return len(words1 & words2) / len(words1 | words2)


def check_reflection_similarity(
    current_text: str,
    past_passing_reflections: Iterable[PastReflection],
) -> Optional[SimilarityWarning]:
    """Return the first past passed reflection that is too similar, if any."""
    for past in past_passing_reflections:
        similarity = calculate_text_similarity(current_text, past.text)
        if similarity >= SIMILARITY_THRESHOLD:
            return SimilarityWarning(
                similar_reflection=past.text,
                similarity=int(similarity * 100 + 0.5),  # half-up
                date=past.created_at,
            )
    return None
