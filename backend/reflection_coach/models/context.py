"""
Models for the UI context navigator.

The app has three modes. Write/Edit is always reachable; Feedback and Chat
require a reflection to work on.
"""

from enum import Enum
from typing import Optional

from reflection_coach.models.base import CamelModel


class AppContext(str, Enum):
    """UI mode."""

    WRITE_EDIT = "write-edit"
    FEEDBACK = "feedback"
    CHAT = "chat"


class SwitchContextRequest(CamelModel):
    context: AppContext


class ContextOption(CamelModel):
    """A context with its display metadata and availability."""

    context: AppContext
    display_name: str
    description: str
    icon: str
    available: bool


class ContextStateResponse(CamelModel):
    """Current navigator state."""

    active_context: AppContext
    is_transitioning: bool
    has_reflection: bool
    options: list[ContextOption]
    next_context: Optional[AppContext] = None
    previous_context: Optional[AppContext] = None


class ContextError(Exception):
    """Base exception for context navigation errors."""

    pass


class ContextUnavailableError(ContextError):
    """Target context requires a reflection that does not exist."""

    def __init__(self, target: AppContext):
        self.target = target
        super().__init__(f"Context '{target.value}' is not available without a reflection")
