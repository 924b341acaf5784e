"""
Chat store: owns chat sessions and their messages.

Handles:
- One session per reflection, created lazily
- Appending validated messages (append-only, insertion order)
- The send round trip with a single-flight guard and a fallback reply

A send never raises to the caller: any failure is turned into a fixed
assistant message so the conversation always gets a turn.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from reflection_coach.core.constants import CHAT_FALLBACK_MESSAGE, CHAT_HISTORY_WINDOW
from reflection_coach.models.chat import (
    ChatHistoryItem,
    ChatMessage,
    ChatSession,
    MessageContext,
    MessageMetadata,
    MessageRole,
)
from reflection_coach.models.evaluation import StructuredResponse
from reflection_coach.models.reflection import Reflection
from reflection_coach.services.chat_service import ChatService
from reflection_coach.services.persistence import PersistenceService, create_chat_session
from reflection_coach.services.validation import (
    generate_message_id,
    is_valid_chat_message,
    sanitize_chat_message,
)

logger = logging.getLogger(__name__)


class ChatStore:
    """In-memory chat sessions mirrored to storage."""

    def __init__(
        self,
        persistence: PersistenceService,
        chat_service: Optional[ChatService] = None,
    ) -> None:
        self._persistence = persistence
        self._chat_service = chat_service
        self._sessions: list[ChatSession] = persistence.load_chat_sessions()
        self.is_sending = False

    @property
    def chat_service(self) -> ChatService:
        if self._chat_service is None:
            self._chat_service = ChatService()
        return self._chat_service

    @property
    def sessions(self) -> list[ChatSession]:
        return list(self._sessions)

    # =========================================================================
    # Sessions
    # =========================================================================

    def get_chat_session(self, reflection_id: str) -> Optional[ChatSession]:
        index = self._index_of(reflection_id)
        return None if index is None else self._sessions[index]

    def get_or_create_session(self, reflection_id: str) -> ChatSession:
        session = self.get_chat_session(reflection_id)
        if session is None:
            session = create_chat_session(reflection_id)
            self._sessions.append(session)
            self._persist()
        return session

    def clear_messages(self, reflection_id: str) -> None:
        index = self._index_of(reflection_id)
        if index is None:
            return
        self._sessions[index] = self._sessions[index].model_copy(update={"messages": []})
        self._persist()

    def delete_chat_session(self, reflection_id: str) -> None:
        self._sessions = [s for s in self._sessions if s.reflection_id != reflection_id]
        self._persist()

    def clear_all_chat_sessions(self) -> None:
        self._sessions = []
        self._persist()

    # =========================================================================
    # Messages
    # =========================================================================

    def get_messages_for_reflection(self, reflection_id: str) -> list[ChatMessage]:
        session = self.get_chat_session(reflection_id)
        return list(session.messages) if session else []

    def get_latest_message(self, reflection_id: str) -> Optional[ChatMessage]:
        messages = self.get_messages_for_reflection(reflection_id)
        return messages[-1] if messages else None

    def get_message_count(self, reflection_id: str) -> int:
        return len(self.get_messages_for_reflection(reflection_id))

    def has_messages(self, reflection_id: str) -> bool:
        return self.get_message_count(reflection_id) > 0

    def add_message(
        self,
        reflection_id: str,
        content: str,
        role: MessageRole,
        context: MessageContext = MessageContext.GENERAL,
    ) -> Optional[ChatMessage]:
        """
        Append a message to the reflection's session, creating it if needed.

        Returns None (and changes nothing) when the content is invalid.
        """
        sanitized = sanitize_chat_message(content)
        if not is_valid_chat_message(sanitized):
            return None

        message = ChatMessage(
            id=generate_message_id(),
            role=role,
            content=sanitized,
            timestamp=datetime.now(timezone.utc),
            context=context,
            metadata=MessageMetadata(reflection_id=reflection_id),
        )

        index = self._index_of(reflection_id)
        if index is None:
            session = create_chat_session(reflection_id)
            self._sessions.append(session.model_copy(update={"messages": [message]}))
        else:
            session = self._sessions[index]
            self._sessions[index] = session.model_copy(
                update={"messages": [*session.messages, message]}
            )
        self._persist()
        return message

    async def send_message(
        self,
        reflection_id: str,
        message: str,
        reflection: Optional[Reflection] = None,
        feedback: Optional[StructuredResponse] = None,
    ) -> bool:
        """
        Send a student message and append the coach's reply.

        Returns False immediately (appending nothing) while another send is in
        flight, and False when the message itself is invalid. Returns True only
        when the remote reply was appended; every other outcome appends the
        fallback assistant message.
        """
        if self.is_sending:
            return False

        self.is_sending = True
        try:
            if self.add_message(reflection_id, message, MessageRole.USER) is None:
                return False

            history = [
                ChatHistoryItem(role=m.role, content=m.content)
                for m in self.get_messages_for_reflection(reflection_id)[-CHAT_HISTORY_WINDOW:]
            ]

            try:
                result = await self.chat_service.chat(
                    message=message,
                    reflection_text=reflection.text if reflection else "",
                    chat_history=history,
                    context=MessageContext.REFLECTION_HELP,
                    current_feedback=feedback,
                )
            except Exception:
                logger.exception(
                    "Error sending chat message", extra={"reflection_id": reflection_id}
                )
                result = None

            if result is not None and not result.flagged and result.data is not None:
                reply = self.add_message(
                    reflection_id,
                    result.data.response,
                    MessageRole.ASSISTANT,
                    result.data.context,
                )
                if reply is not None:
                    return True
                logger.warning("Chat reply rejected by message rules; using fallback")
            elif result is not None:
                logger.info("Chat reply unavailable (flagged=%s)", result.flagged)

            self.add_message(reflection_id, CHAT_FALLBACK_MESSAGE, MessageRole.ASSISTANT)
            return False
        finally:
            self.is_sending = False

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _index_of(self, reflection_id: str) -> Optional[int]:
        for index, session in enumerate(self._sessions):
            if session.reflection_id == reflection_id:
                return index
        return None

    def _persist(self) -> None:
        self._persistence.save_chat_sessions(self._sessions)
