"""
Reflection store: owns the reflection list and the selection pointer.

Handles:
- Create / edit / status / delete over the reflection list (newest first)
- Selection pointer, cleared when the selected reflection is deleted
- Statistics per status, recomputed on every call

Invalid text is reported with a sentinel (None / False) and never mutates
state. Every mutation mirrors the full collection to the persistence adapter.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from reflection_coach.models.reflection import Reflection, ReflectionStats, ReflectionStatus
from reflection_coach.services.persistence import PersistenceService
from reflection_coach.services.validation import (
    generate_chat_session_id,
    generate_reflection_id,
    is_valid_reflection_text,
    sanitize_reflection_text,
)

logger = logging.getLogger(__name__)


class ReflectionStore:
    """In-memory reflection state mirrored to storage."""

    def __init__(self, persistence: PersistenceService) -> None:
        self._persistence = persistence
        self._reflections: list[Reflection] = persistence.load_reflections()
        self._selected_id: Optional[str] = persistence.load_selected_reflection_id()

    @property
    def reflections(self) -> list[Reflection]:
        return list(self._reflections)

    @property
    def selected_reflection_id(self) -> Optional[str]:
        return self._selected_id

    # =========================================================================
    # Mutations
    # =========================================================================

    def add_reflection(
        self, text: str, chat_session_id: Optional[str] = None
    ) -> Optional[Reflection]:
        """
        Create a pending reflection at the front of the list and select it.

        Returns None (and changes nothing) when the text is invalid.
        """
        sanitized = sanitize_reflection_text(text)
        if not is_valid_reflection_text(sanitized):
            return None

        now = datetime.now(timezone.utc)
        reflection = Reflection(
            id=generate_reflection_id(),
            text=sanitized,
            status=ReflectionStatus.PENDING,
            created_at=now,
            updated_at=now,
            chat_session_id=chat_session_id or generate_chat_session_id(),
            current_version=1,
        )

        self._reflections.insert(0, reflection)
        self._selected_id = reflection.id
        self._persist()
        logger.info(
            "Reflection created: %s", reflection.id, extra={"reflection_id": reflection.id}
        )
        return reflection

    def update_reflection(self, reflection_id: str, text: str) -> bool:
        """Replace the text of one reflection, bumping its version and updated_at."""
        sanitized = sanitize_reflection_text(text)
        if not is_valid_reflection_text(sanitized):
            return False

        index = self._index_of(reflection_id)
        if index is None:
            return False

        current = self._reflections[index]
        self._reflections[index] = current.model_copy(
            update={
                "text": sanitized,
                "updated_at": datetime.now(timezone.utc),
                "current_version": current.current_version + 1,
            }
        )
        self._persist()
        return True

    def update_reflection_status(self, reflection_id: str, status: ReflectionStatus) -> bool:
        """Set the status of one reflection. No transition rules apply."""
        index = self._index_of(reflection_id)
        if index is None:
            return False

        self._reflections[index] = self._reflections[index].model_copy(
            update={"status": status, "updated_at": datetime.now(timezone.utc)}
        )
        self._persist()
        return True

    def delete_reflection(self, reflection_id: str) -> bool:
        index = self._index_of(reflection_id)
        if index is None:
            return False

        del self._reflections[index]
        if self._selected_id == reflection_id:
            self._selected_id = None
        self._persist()
        logger.info("Reflection deleted: %s", reflection_id, extra={"reflection_id": reflection_id})
        return True

    def select_reflection(self, reflection_id: str) -> None:
        self._selected_id = reflection_id
        self._persistence.save_selected_reflection_id(self._selected_id)

    def clear_selection(self) -> None:
        self._selected_id = None
        self._persistence.save_selected_reflection_id(None)

    def clear_all_reflections(self) -> None:
        self._reflections = []
        self._selected_id = None
        self._persist()

    # =========================================================================
    # Queries
    # =========================================================================

    def get_reflection(self, reflection_id: str) -> Optional[Reflection]:
        index = self._index_of(reflection_id)
        return None if index is None else self._reflections[index]

    def get_selected_reflection(self) -> Optional[Reflection]:
        if self._selected_id is None:
            return None
        return self.get_reflection(self._selected_id)

    def get_reflections_by_status(self, status: ReflectionStatus) -> list[Reflection]:
        return [r for r in self._reflections if r.status == status]

    def get_latest_reflection(self) -> Optional[Reflection]:
        return self._reflections[0] if self._reflections else None

    def get_stats(self) -> ReflectionStats:
        """Count reflections per status over the current list."""
        stats = ReflectionStats(total=len(self._reflections))
        for reflection in self._reflections:
            if reflection.status == ReflectionStatus.PASSED:
                stats.passed += 1
            elif reflection.status == ReflectionStatus.IN_PROGRESS:
                stats.in_progress += 1
            elif reflection.status == ReflectionStatus.PENDING:
                stats.pending += 1
        return stats

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _index_of(self, reflection_id: str) -> Optional[int]:
        for index, reflection in enumerate(self._reflections):
            if reflection.id == reflection_id:
                return index
        return None

    def _persist(self) -> None:
        self._persistence.save_reflections(self._reflections)
        self._persistence.save_selected_reflection_id(self._selected_id)
