"""
Pydantic models for coaching chat sessions.

Each reflection owns exactly one chat session. Messages are append-only and
kept in display order.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import Field

from reflection_coach.models.base import CamelModel
from reflection_coach.models.evaluation import StructuredResponse

# =============================================================================
# Enums
# =============================================================================


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageContext(str, Enum):
    """What a chat message is about."""

    GENERAL = "general"
    REFLECTION_HELP = "reflection-help"
    FEEDBACK_DISCUSSION = "feedback-discussion"


# =============================================================================
# Domain Models
# =============================================================================


class MessageMetadata(CamelModel):
    reflection_id: Optional[str] = None
    is_editable: Optional[bool] = None


class ChatMessage(CamelModel):
    """A single chat message."""

    id: str
    role: MessageRole
    content: str
    timestamp: datetime
    context: MessageContext = MessageContext.GENERAL
    metadata: Optional[MessageMetadata] = None


class ChatSession(CamelModel):
    """Conversation attached to one reflection."""

    id: str
    reflection_id: str
    messages: list[ChatMessage] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime


class ChatHistoryItem(CamelModel):
    """Role/content pair sent to the chat boundary as context."""

    role: MessageRole
    content: str


# =============================================================================
# Request Models
# =============================================================================


class ChatRequest(CamelModel):
    """Body of POST /api/chat."""

    message: str = Field(..., min_length=1)
    reflection_text: str = ""
    chat_history: list[ChatHistoryItem] = Field(default_factory=list)
    context: MessageContext = MessageContext.GENERAL
    current_feedback: Optional[StructuredResponse] = None


class SendChatMessageRequest(CamelModel):
    """Send a message in the chat attached to a reflection."""

    message: str


# =============================================================================
# Response Models
# =============================================================================


class ChatReply(CamelModel):
    """Assistant reply wrapped into the fixed response schema."""

    response: str
    context: MessageContext
    helpful: bool = True
    suggestions: Optional[list[str]] = None


class ChatResult(CamelModel):
    """Outcome of the chat boundary: either flagged or answered."""

    flagged: bool = False
    categories: Optional[dict[str, bool]] = None
    data: Optional[ChatReply] = None
    model_used: Optional[str] = None


class ChatFunctionResponse(CamelModel):
    """Successful chat envelope."""

    success: Literal[True] = True
    data: ChatReply
    model_used: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ChatMessagesResponse(CamelModel):
    """Messages of the chat attached to a reflection."""

    reflection_id: str
    session_id: Optional[str] = None
    messages: list[ChatMessage]
    message_count: int
    is_sending: bool = False


class SendChatMessageResponse(CamelModel):
    """Result of a chat round trip. The assistant turn is always present."""

    success: bool
    messages: list[ChatMessage]
    is_sending: bool = False


# =============================================================================
# Exception Classes
# =============================================================================


class ChatError(Exception):
    """Base exception for chat errors."""

    pass


class ChatMessageValidationError(ChatError):
    """Chat message failed the length rule."""

    pass


class ChatSendInProgressError(ChatError):
    """Another message is still being sent for this profile."""

    pass
