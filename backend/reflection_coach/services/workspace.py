"""
Per-profile workspace tying the stores to the remote boundaries.

Handles:
- Save-draft and submit workflows (create or update, evaluate, set status,
  switch to the feedback context)
- Transient per-reflection feedback (held in memory, never persisted)
- Cascading deletes (selection, chat session, held feedback)
- Chat sends with the reflection and its feedback as context

One workspace exists per profile per process so the single-flight guards on
chat sending and evaluation cover concurrent requests from the same profile.
"""

import logging
from collections import OrderedDict
from functools import lru_cache
from typing import Optional

from reflection_coach.core.config import get_settings
from reflection_coach.models.chat import (
    ChatMessageValidationError,
    ChatSendInProgressError,
    SendChatMessageResponse,
)
from reflection_coach.models.context import (
    AppContext,
    ContextStateResponse,
    ContextUnavailableError,
)
from reflection_coach.models.evaluation import PastReflection, StructuredResponse
from reflection_coach.models.reflection import (
    EvaluationInProgressError,
    Reflection,
    ReflectionNotFoundError,
    ReflectionStatus,
    ReflectionValidationError,
    SubmitReflectionResponse,
)
from reflection_coach.services.chat_service import ChatService
from reflection_coach.services.chat_store import ChatStore
from reflection_coach.services.context_navigator import ContextNavigator
from reflection_coach.services.evaluation_service import EvaluationService
from reflection_coach.services.persistence import PersistenceService
from reflection_coach.services.reflection_store import ReflectionStore
from reflection_coach.services.scoring import (
    check_reflection_similarity,
    get_display_score,
    status_for_evaluation,
)
from reflection_coach.services.validation import (
    get_reflection_validation_error,
    is_valid_chat_message,
)

logger = logging.getLogger(__name__)


class Workspace:
    """Reflection, chat and context state for a single profile."""

    def __init__(
        self,
        profile_id: str,
        persistence: Optional[PersistenceService] = None,
        evaluation_service: Optional[EvaluationService] = None,
        chat_service: Optional[ChatService] = None,
        transition_delay: Optional[float] = None,
    ) -> None:
        self.profile_id = profile_id
        persistence = persistence or PersistenceService(profile_id)
        self._persistence = persistence
        self._evaluation_service = evaluation_service
        self.reflections = ReflectionStore(persistence)
        self.chat = ChatStore(persistence, chat_service=chat_service)
        self.navigator = ContextNavigator(persistence, transition_delay=transition_delay)
        self._feedback: dict[str, StructuredResponse] = {}
        self.is_evaluating = False

    @property
    def evaluation_service(self) -> EvaluationService:
        if self._evaluation_service is None:
            self._evaluation_service = EvaluationService()
        return self._evaluation_service

    @property
    def has_reflection(self) -> bool:
        return self.reflections.get_selected_reflection() is not None

    @property
    def is_busy(self) -> bool:
        """True while a chat send or an evaluation is in flight."""
        return self.chat.is_sending or self.is_evaluating

    # =========================================================================
    # Reflections
    # =========================================================================

    def require_reflection(self, reflection_id: str) -> Reflection:
        reflection = self.reflections.get_reflection(reflection_id)
        if reflection is None:
            raise ReflectionNotFoundError(reflection_id)
        return reflection

    def create_reflection(self, text: str, chat_session_id: Optional[str] = None) -> Reflection:
        reflection = self.reflections.add_reflection(text, chat_session_id)
        if reflection is None:
            raise ReflectionValidationError(get_reflection_validation_error(text))
        return reflection

    def update_reflection_text(self, reflection_id: str, text: str) -> Reflection:
        self.require_reflection(reflection_id)
        if not self.reflections.update_reflection(reflection_id, text):
            raise ReflectionValidationError(get_reflection_validation_error(text))
        return self.require_reflection(reflection_id)

    def update_reflection_status(self, reflection_id: str, status: ReflectionStatus) -> Reflection:
        if not self.reflections.update_reflection_status(reflection_id, status):
            raise ReflectionNotFoundError(reflection_id)
        return self.require_reflection(reflection_id)

    def delete_reflection(self, reflection_id: str) -> None:
        """Delete a reflection along with its selection, chat session and feedback."""
        if not self.reflections.delete_reflection(reflection_id):
            raise ReflectionNotFoundError(reflection_id)
        self.chat.delete_chat_session(reflection_id)
        self._feedback.pop(reflection_id, None)

    def select_reflection(self, reflection_id: str) -> Reflection:
        reflection = self.require_reflection(reflection_id)
        self.reflections.select_reflection(reflection_id)
        return reflection

    def get_feedback(self, reflection_id: str) -> Optional[StructuredResponse]:
        return self._feedback.get(reflection_id)

    def save_draft(self, text: str, reflection_id: Optional[str] = None) -> Reflection:
        """Save text to the target (or selected) reflection, or create one; mark in progress."""
        reflection = self._write_text(text, reflection_id)
        return self.update_reflection_status(reflection.id, ReflectionStatus.IN_PROGRESS)

    async def submit_reflection(
        self, text: str, reflection_id: Optional[str] = None
    ) -> SubmitReflectionResponse:
        """
        Save and evaluate a reflection.

        A flagged submission leaves the reflection's status unchanged. A
        successful one stores the feedback, sets the status from the tier and
        switches to the feedback context.

        Raises:
            EvaluationInProgressError: Another submission is being evaluated
            ReflectionValidationError: Text breaks the length or sentence rules
            EvaluationContractError / OpenAIServiceError: Evaluation failed
        """
        if self.is_evaluating:
            raise EvaluationInProgressError("A reflection is already being evaluated")

        error = get_reflection_validation_error(text)
        if error:
            raise ReflectionValidationError(error)

        self.is_evaluating = True
        try:
            reflection = self._write_text(text, reflection_id)
            past_passing = [
                PastReflection(text=r.text, created_at=r.created_at.isoformat())
                for r in self.reflections.get_reflections_by_status(ReflectionStatus.PASSED)
                if r.id != reflection.id
            ]
            similarity_warning = check_reflection_similarity(reflection.text, past_passing)

            result = await self.evaluation_service.evaluate(reflection.text)
            if result.flagged or result.data is None:
                logger.info(
                    "Submission flagged for review",
                    extra={"profile_id": self.profile_id, "reflection_id": reflection.id},
                )
                return SubmitReflectionResponse(
                    success=False,
                    reflection=reflection,
                    flagged=True,
                    categories=result.categories,
                    similarity_warning=similarity_warning,
                )

            feedback = result.data
            self._feedback[reflection.id] = feedback
            reflection = self.update_reflection_status(
                reflection.id, status_for_evaluation(feedback)
            )
            await self.navigator.switch_to_feedback(has_reflection=True)
            return SubmitReflectionResponse(
                success=True,
                reflection=reflection,
                feedback=feedback,
                display_score=get_display_score(feedback.overall_score),
                similarity_warning=similarity_warning,
            )
        finally:
            self.is_evaluating = False

    # =========================================================================
    # Chat
    # =========================================================================

    async def send_chat_message(self, reflection_id: str, message: str) -> SendChatMessageResponse:
        reflection = self.require_reflection(reflection_id)
        if not is_valid_chat_message(message):
            raise ChatMessageValidationError("Message must be between 1 and 2000 characters.")
        if self.chat.is_sending:
            raise ChatSendInProgressError("A message is already being sent")

        success = await self.chat.send_message(
            reflection_id, message, reflection, self.get_feedback(reflection_id)
        )
        return SendChatMessageResponse(
            success=success,
            messages=self.chat.get_messages_for_reflection(reflection_id),
            is_sending=self.chat.is_sending,
        )

    # =========================================================================
    # Context
    # =========================================================================

    async def switch_context(self, target: AppContext) -> ContextStateResponse:
        if not await self.navigator.switch_context(target, self.has_reflection):
            raise ContextUnavailableError(target)
        return self.context_state()

    def context_state(self) -> ContextStateResponse:
        has_reflection = self.has_reflection
        current = self.navigator.active_context
        return ContextStateResponse(
            active_context=current,
            is_transitioning=self.navigator.is_transitioning,
            has_reflection=has_reflection,
            options=self.navigator.get_options(has_reflection),
            next_context=self.navigator.get_next_context(current, has_reflection),
            previous_context=self.navigator.get_previous_context(current, has_reflection),
        )

    def reset(self) -> None:
        """Drop every reflection, chat session and the stored context for this profile."""
        self.reflections.clear_all_reflections()
        self.chat.clear_all_chat_sessions()
        self.navigator.reset_context()
        self._feedback.clear()
        self._persistence.clear_all()

    # =========================================================================
    # Private Helpers
    # =========================================================================

    def _write_text(self, text: str, reflection_id: Optional[str]) -> Reflection:
        target_id = reflection_id or self.reflections.selected_reflection_id
        if reflection_id is not None:
            self.require_reflection(reflection_id)
        if target_id is not None and self.reflections.get_reflection(target_id) is not None:
            reflection = self.update_reflection_text(target_id, text)
            if self.reflections.selected_reflection_id != target_id:
                self.reflections.select_reflection(target_id)
            return reflection
        return self.create_reflection(text)


class WorkspaceRegistry:
    """
    Process-wide map of profile id to workspace.

    Holds at most max_size workspaces, evicting the least recently used idle
    one when a new profile arrives. Reflections, chat sessions and context are
    persisted, so an evicted profile reloads them on its next request; only
    the held feedback is lost. A workspace that is mid-send or mid-evaluation
    is never evicted, so the registry may briefly exceed max_size when every
    held workspace is busy.
    """

    def __init__(self, max_size: Optional[int] = None) -> None:
        self.max_size = max_size if max_size is not None else get_settings().max_workspaces
        self._workspaces: OrderedDict[str, Workspace] = OrderedDict()

    def __len__(self) -> int:
        return len(self._workspaces)

    def __contains__(self, profile_id: str) -> bool:
        return profile_id in self._workspaces

    def get(self, profile_id: str) -> Workspace:
        workspace = self._workspaces.get(profile_id)
        if workspace is not None:
            self._workspaces.move_to_end(profile_id)
            return workspace

        self._evict_idle(room_for=1)
        workspace = Workspace(profile_id)
        self._workspaces[profile_id] = workspace
        logger.debug("Workspace loaded", extra={"profile_id": profile_id})
        return workspace

    def clear(self) -> None:
        self._workspaces.clear()

    def _evict_idle(self, room_for: int) -> None:
        excess = len(self._workspaces) + room_for - self.max_size
        if excess <= 0:
            return
        for profile_id in list(self._workspaces):
            if excess <= 0:
                break
            if self._workspaces[profile_id].is_busy:
                continue
            del self._workspaces[profile_id]
            excess -= 1
            logger.debug("Workspace evicted", extra={"profile_id": profile_id})


@lru_cache
def get_workspace_registry() -> WorkspaceRegistry:
    """Get the process-wide workspace registry."""
    return WorkspaceRegistry()
