"""
Models for the reflection evaluation boundary.

StructuredResponse is the exact shape the remote model must return. It
forbids unknown fields and accepts only the camelCase wire keys, so a
drifting response is rejected as a contract violation.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import ConfigDict, Field

from reflection_coach.models.base import CamelModel
from reflection_coach.models.moderation import FlaggedResponse

# =============================================================================
# Enums
# =============================================================================


class EvaluationStatus(str, Enum):
    """Coarse quality tier assigned by the evaluator."""

    NEEDS_WORK = "needs-work"
    GOOD = "good"
    EXCELLENT = "excellent"


# =============================================================================
# Structured Output
# =============================================================================


class FeedbackItem(CamelModel):
    """Pass/fail judgment for one rubric dimension."""

    model_config = ConfigDict(extra="forbid", populate_by_name=False)

    pass_: bool = Field(..., alias="pass")
    remarks: str
    suggestions: Optional[list[str]] = None


class RubricFeedback(CamelModel):
    """Judgments for the three rubric dimensions."""

    model_config = ConfigDict(extra="forbid", populate_by_name=False)

    happened: FeedbackItem
    feeling: FeedbackItem
    next: FeedbackItem


class StructuredResponse(CamelModel):
    """Evaluation of a single reflection."""

    model_config = ConfigDict(extra="forbid", frozen=True, populate_by_name=False)

    feedback: RubricFeedback
    suggestions: list[str]
    overall_score: Union[int, float] = Field(..., ge=0, le=100)
    status: EvaluationStatus


# =============================================================================
# Request Models
# =============================================================================


class PastReflection(CamelModel):
    """A previously passed reflection used for duplicate detection."""

    text: str
    created_at: str


class EvaluateReflectionRequest(CamelModel):
    """Body of POST /api/evaluate-reflection."""

    reflection_text: str = Field(..., min_length=1)
    past_passing_reflections: list[PastReflection] = Field(default_factory=list)


# =============================================================================
# Response Models
# =============================================================================


class SimilarityWarning(CamelModel):
    """Advisory warning that a submission closely matches an earlier passed one."""

    similar_reflection: str
    similarity: int
    date: str


class EvaluationResult(CamelModel):
    """Outcome of the evaluation boundary: either flagged or scored."""

    flagged: bool = False
    categories: Optional[dict[str, bool]] = None
    data: Optional[StructuredResponse] = None
    model_used: Optional[str] = None


class EvaluateReflectionResponse(CamelModel):
    """Successful evaluation envelope."""

    success: Literal[True] = True
    data: StructuredResponse
    model_used: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    similarity_warning: Optional[SimilarityWarning] = None


EvaluateReflectionOutcome = Union[EvaluateReflectionResponse, FlaggedResponse]


# =============================================================================
# Exception Classes
# =============================================================================


class EvaluationError(Exception):
    """Base exception for evaluation errors."""

    pass


class EvaluationContractError(EvaluationError):
    """Remote evaluation output failed JSON parsing or schema validation."""

    pass
