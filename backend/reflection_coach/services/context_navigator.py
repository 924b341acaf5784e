"""
Context navigator: which of the three UI modes is active.

States: write-edit (default), feedback, chat. Feedback and chat require a
reflection. A switch to the current context is a successful no-op; any
other valid switch raises is_transitioning for a short cosmetic delay
before committing. The active context is persisted and restored verbatim.
"""

import asyncio
import logging
from typing import Optional

from reflection_coach.core.config import get_settings
from reflection_coach.models.context import AppContext, ContextOption
from reflection_coach.services.persistence import PersistenceService
from reflection_coach.services.validation import is_valid_context_switch

logger = logging.getLogger(__name__)

CONTEXT_DISPLAY_NAMES = {
    AppContext.CHAT: "Chat",
    AppContext.FEEDBACK: "Feedback",
    AppContext.WRITE_EDIT: "Write/Edit",
}

CONTEXT_DESCRIPTIONS = {
    AppContext.CHAT: "Get help and ask questions about your reflection",
    AppContext.FEEDBACK: "View feedback and suggestions for your reflection",
    AppContext.WRITE_EDIT: "Write and edit your daily reflection",
}

CONTEXT_ICONS = {
    AppContext.CHAT: "💬",
    AppContext.FEEDBACK: "📊",
    AppContext.WRITE_EDIT: "✏️",
}


class ContextNavigator:
    """Persistent UI mode selector."""

    def __init__(
        self,
        persistence: PersistenceService,
        transition_delay: Optional[float] = None,
    ) -> None:
        self._persistence = persistence
        self._transition_delay = (
            transition_delay
            if transition_delay is not None
            else get_settings().context_transition_delay_seconds
        )
        self.active_context: AppContext = persistence.load_active_context()
        self.is_transitioning = False

    async def switch_context(self, target: AppContext, has_reflection: bool) -> bool:
        """
        Switch to target if its guard allows it.

        Returns False (state unchanged) when target needs a reflection and
        there is none; True otherwise.
        """
        if not is_valid_context_switch(target, has_reflection):
            logger.warning("Invalid context switch attempted: %s", target.value)
            return False

        if target == self.active_context:
            return True

        self.is_transitioning = True
        try:
            await asyncio.sleep(self._transition_delay)
            self.active_context = target
            self._persistence.save_active_context(target)
            return True
        finally:
            self.is_transitioning = False

    async def switch_to_chat(self, has_reflection: bool) -> bool:
        return await self.switch_context(AppContext.CHAT, has_reflection)

    async def switch_to_feedback(self, has_reflection: bool) -> bool:
        return await self.switch_context(AppContext.FEEDBACK, has_reflection)

    async def switch_to_write_edit(self) -> bool:
        return await self.switch_context(AppContext.WRITE_EDIT, has_reflection=False)

    def reset_context(self) -> None:
        self.active_context = AppContext.WRITE_EDIT
        self._persistence.save_active_context(self.active_context)

    # =========================================================================
    # Display metadata and workflow ordering
    # =========================================================================

    @staticmethod
    def get_context_display_name(context: AppContext) -> str:
        return CONTEXT_DISPLAY_NAMES.get(context, "Unknown")

    @staticmethod
    def get_context_description(context: AppContext) -> str:
        return CONTEXT_DESCRIPTIONS.get(context, "Unknown context")

    @staticmethod
    def get_context_icon(context: AppContext) -> str:
        return CONTEXT_ICONS.get(context, "❓")

    @staticmethod
    def is_context_available(context: AppContext, has_reflection: bool) -> bool:
        return is_valid_context_switch(context, has_reflection)

    @staticmethod
    def get_next_context(current: AppContext, has_reflection: bool) -> Optional[AppContext]:
        """Next step in write -> feedback -> chat -> write. Advisory only."""
        if current == AppContext.WRITE_EDIT:
            return AppContext.FEEDBACK if has_reflection else None
        if current == AppContext.FEEDBACK:
            return AppContext.CHAT
        if current == AppContext.CHAT:
            return AppContext.WRITE_EDIT
        return None

    @staticmethod
    def get_previous_context(current: AppContext, has_reflection: bool) -> Optional[AppContext]:
        if current == AppContext.WRITE_EDIT:
            return AppContext.CHAT
        if current == AppContext.FEEDBACK:
            return AppContext.WRITE_EDIT
        if current == AppContext.CHAT:
            return AppContext.FEEDBACK if has_reflection else None
        return None

    def get_options(self, has_reflection: bool) -> list[ContextOption]:
        return [
            ContextOption(
                context=context,
                display_name=self.get_context_display_name(context),
                description=self.get_context_description(context),
                icon=self.get_context_icon(context),
                available=self.is_context_available(context, has_reflection),
            )
            for context in (AppContext.WRITE_EDIT, AppContext.FEEDBACK, AppContext.CHAT)
        ]
