"""
Persistence adapter for per-profile reflection journal state.

Handles:
- Loading/saving the reflection list, chat sessions, active context and
  selected reflection pointer as JSON blobs
- Resetting any malformed blob to its empty/default value
- Best-effort writes: storage failures are logged, never raised

Dates are stored as ISO-8601 strings and parsed back to datetimes on load.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import TypeAdapter, ValidationError

from reflection_coach.core.storage import StorageKeys, get_storage_client
from reflection_coach.models.chat import ChatSession
from reflection_coach.models.context import AppContext
from reflection_coach.models.reflection import Reflection
from reflection_coach.services.validation import generate_chat_session_id

logger = logging.getLogger(__name__)

_reflections_adapter = TypeAdapter(list[Reflection])
_chat_sessions_adapter = TypeAdapter(list[ChatSession])


def create_chat_session(reflection_id: str) -> ChatSession:
    """Build a new, empty, active chat session for a reflection."""
    return ChatSession(
        id=generate_chat_session_id(),
        reflection_id=reflection_id,
        messages=[],
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )


class PersistenceService:
    """Load/save journal blobs for a single profile."""

    def __init__(self, profile_id: str, client: Optional[Any] = None) -> None:
        self.profile_id = profile_id
        self._client = client

    @property
    def client(self) -> Any:
        """Lazy-load the storage client on first access."""
        if self._client is None:
            self._client = get_storage_client()
        return self._client

    # =========================================================================
    # Public API
    # =========================================================================

    def load_reflections(self) -> list[Reflection]:
        raw = self._read(StorageKeys.reflections(self.profile_id))
        if raw is None:
            return []
        try:
            return _reflections_adapter.validate_json(raw)
        except ValidationError:
            logger.warning(
                "Invalid reflections data in storage, resetting to empty list",
                extra={"profile_id": self.profile_id},
            )
            return []

    def save_reflections(self, reflections: list[Reflection]) -> None:
        self._write(
            StorageKeys.reflections(self.profile_id),
            _reflections_adapter.dump_json(reflections, by_alias=True).decode(),
        )

    def load_chat_sessions(self) -> list[ChatSession]:
        raw = self._read(StorageKeys.chat_sessions(self.profile_id))
        if raw is None:
            return []
        try:
            return _chat_sessions_adapter.validate_json(raw)
        except ValidationError:
            logger.warning(
                "Invalid chat sessions data in storage, resetting to empty list",
                extra={"profile_id": self.profile_id},
            )
            return []

    def save_chat_sessions(self, sessions: list[ChatSession]) -> None:
        self._write(
            StorageKeys.chat_sessions(self.profile_id),
            _chat_sessions_adapter.dump_json(sessions, by_alias=True).decode(),
        )

    def load_active_context(self) -> AppContext:
        raw = self._read(StorageKeys.active_context(self.profile_id))
        if raw is None:
            return AppContext.WRITE_EDIT
        try:
            return AppContext(json.loads(raw))
        except (ValueError, TypeError):
            logger.warning(
                "Invalid active context in storage, resetting to default",
                extra={"profile_id": self.profile_id},
            )
            return AppContext.WRITE_EDIT

    def save_active_context(self, context: AppContext) -> None:
        self._write(StorageKeys.active_context(self.profile_id), json.dumps(context.value))

    def load_selected_reflection_id(self) -> Optional[str]:
        raw = self._read(StorageKeys.selected_reflection_id(self.profile_id))
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except ValueError:
            value = None
        if value is not None and not isinstance(value, str):
            value = None
        if value is None and raw != "null":
            logger.warning(
                "Invalid selected reflection id in storage, clearing selection",
                extra={"profile_id": self.profile_id},
            )
        return value

    def save_selected_reflection_id(self, reflection_id: Optional[str]) -> None:
        self._write(
            StorageKeys.selected_reflection_id(self.profile_id), json.dumps(reflection_id)
        )

    def clear_all(self) -> None:
        """Remove every blob stored for this profile."""
        try:
            self.client.delete(*StorageKeys.all_for_profile(self.profile_id))
        except Exception:
            logger.error(
                "Storage clear failed for profile=%s", self.profile_id, exc_info=True
            )

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _read(self, key: str) -> Optional[str]:
        try:
            return self.client.get(key)
        except Exception:
            logger.error("Storage read failed for key=%s", key, exc_info=True)
            return None

    def _write(self, key: str, value: str) -> None:
        try:
            self.client.set(key, value)
        except Exception:
            logger.error("Storage write failed for key=%s", key, exc_info=True)
