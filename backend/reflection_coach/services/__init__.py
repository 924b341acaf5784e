"""Business logic services for Reflection Coach API."""

from reflection_coach.services.chat_store import ChatStore
from reflection_coach.services.context_navigator import ContextNavigator
from reflection_coach.services.persistence import PersistenceService
from reflection_coach.services.reflection_store import ReflectionStore
from reflection_coach.services.workspace import Workspace, WorkspaceRegistry

__all__ = [
    "ChatStore",
    "ContextNavigator",
    "PersistenceService",
    "ReflectionStore",
    "Workspace",
    "WorkspaceRegistry",
]
