"""
Pydantic models for student reflections.

A reflection is a short first-person journal entry (3-4 sentences) that is
scored on three rubric dimensions: what happened, how the student felt, and
what they will do next.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from reflection_coach.models.base import CamelModel
from reflection_coach.models.evaluation import SimilarityWarning, StructuredResponse

# =============================================================================
# Enums
# =============================================================================


class ReflectionStatus(str, Enum):
    """Lifecycle status of a reflection."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    PASSED = "passed"


# =============================================================================
# Domain Models
# =============================================================================


class Reflection(CamelModel):
    """A single reflection as held in memory and persisted."""

    id: str
    text: str
    status: ReflectionStatus = ReflectionStatus.PENDING
    created_at: datetime
    updated_at: datetime
    chat_session_id: str
    current_version: int = Field(1, ge=1)


class ReflectionStats(CamelModel):
    """Counts of reflections per status."""

    total: int = 0
    passed: int = 0
    in_progress: int = 0
    pending: int = 0


class RequirementAnalysis(CamelModel):
    """Keyword-based hint of which rubric dimensions a text seems to cover."""

    has_happened: bool
    has_feeling: bool
    has_next: bool
    completeness: int = Field(..., ge=0, le=3)


# =============================================================================
# Request Models
# =============================================================================


class CreateReflectionRequest(CamelModel):
    """Create a reflection. Text rules are enforced by the store."""

    text: str
    chat_session_id: Optional[str] = None


class UpdateReflectionRequest(CamelModel):
    """Replace the text of a reflection."""

    text: str


class UpdateReflectionStatusRequest(CamelModel):
    """Set the status of a reflection."""

    status: ReflectionStatus


class ReflectionTextRequest(CamelModel):
    """Save-draft / submit body. Targets the selected reflection when no id is given."""

    text: str
    reflection_id: Optional[str] = None


class AnalyzeReflectionRequest(CamelModel):
    """Text to run the client-side requirement hints against."""

    text: str


# =============================================================================
# Response Models
# =============================================================================


class ReflectionListResponse(CamelModel):
    """All reflections (newest first) and the current selection."""

    reflections: list[Reflection]
    selected_reflection_id: Optional[str] = None
    total: int


class ReflectionFeedbackResponse(CamelModel):
    """Feedback currently held in memory for a reflection."""

    reflection_id: str
    feedback: Optional[StructuredResponse] = None
    display_score: Optional[int] = None


class SubmitReflectionResponse(CamelModel):
    """Outcome of submitting a reflection for evaluation."""

    success: bool
    reflection: Reflection
    flagged: bool = False
    categories: Optional[dict[str, bool]] = None
    feedback: Optional[StructuredResponse] = None
    display_score: Optional[int] = None
    similarity_warning: Optional[SimilarityWarning] = None


class SelectionResponse(CamelModel):
    """Current selection pointer."""

    selected_reflection_id: Optional[str] = None
    reflection: Optional[Reflection] = None


# =============================================================================
# Exception Classes
# =============================================================================


class ReflectionError(Exception):
    """Base exception for reflection errors."""

    pass


class ReflectionNotFoundError(ReflectionError):
    """Reflection does not exist for this profile."""

    def __init__(self, reflection_id: str):
        self.reflection_id = reflection_id
        super().__init__(f"Reflection {reflection_id} not found")


class ReflectionValidationError(ReflectionError):
    """Reflection text failed the length or sentence rules."""

    pass


class EvaluationInProgressError(ReflectionError):
    """A submission is already being evaluated for this profile."""

    pass
