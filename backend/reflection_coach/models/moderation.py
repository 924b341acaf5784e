"""
Content moderation models.

Both remote boundaries run a moderation pre-check. A flagged result is a
success-shaped outcome that asks for adult review; it is never an error.
"""

from typing import Literal, Optional

from pydantic import Field

from reflection_coach.models.base import CamelModel


class ModerationResult(CamelModel):
    """Result of a remote moderation check."""

    flagged: bool
    categories: dict[str, bool] = Field(default_factory=dict)


class FlaggedResponse(CamelModel):
    """Envelope returned when content needs adult review."""

    success: Literal[False] = False
    flagged: Literal[True] = True
    error: str = "Content flagged for review"
    message: str
    categories: Optional[dict[str, bool]] = None
