"""Pydantic models for Reflection Coach API."""

from reflection_coach.models.chat import (
    ChatMessage,
    ChatMessageValidationError,
    ChatSession,
    MessageContext,
    MessageRole,
)
from reflection_coach.models.context import AppContext, ContextUnavailableError
from reflection_coach.models.evaluation import (
    EvaluationContractError,
    EvaluationStatus,
    StructuredResponse,
)
from reflection_coach.models.reflection import (
    Reflection,
    ReflectionNotFoundError,
    ReflectionStatus,
    ReflectionValidationError,
)

__all__ = [
    # Reflection models
    "Reflection",
    "ReflectionNotFoundError",
    "ReflectionStatus",
    "ReflectionValidationError",
    # Chat models
    "ChatMessage",
    "ChatMessageValidationError",
    "ChatSession",
    "MessageContext",
    "MessageRole",
    # Context models
    "AppContext",
    "ContextUnavailableError",
    # Evaluation models
    "EvaluationContractError",
    "EvaluationStatus",
    "StructuredResponse",
]
