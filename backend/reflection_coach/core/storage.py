"""
Key-value blob storage backing the per-profile persistence adapter.

Uses a lazily created synchronous Redis client (the stores are synchronous).
Callers own error handling: the persistence adapter treats every storage
failure as best-effort and never lets it escape.
"""

import logging
from typing import Optional

from redis import Redis as SyncRedis

from reflection_coach.core.config import get_settings

logger = logging.getLogger(__name__)

_storage_client: Optional[SyncRedis] = None


def get_storage_client() -> SyncRedis:
    """Lazy-init sync Redis client for blob storage."""
    global _storage_client
    if _storage_client is None:
        settings = get_settings()
        _storage_client = SyncRedis.from_url(
            settings.storage_url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    return _storage_client


def reset_storage_client() -> None:
    """Reset sync Redis client (for testing)."""
    global _storage_client
    _storage_client = None


def ping_storage() -> bool:
    """Check storage connectivity. Raises on connection failure."""
    return bool(get_storage_client().ping())


class StorageKeys:
    """Key patterns for persisted profile blobs."""

    @staticmethod
    def reflections(profile_id: str) -> str:
        """Key for the reflection list."""
        return f"profile:{profile_id}:reflections"

    @staticmethod
    def chat_sessions(profile_id: str) -> str:
        """Key for the chat session list."""
        return f"profile:{profile_id}:chat_sessions"

    @staticmethod
    def active_context(profile_id: str) -> str:
        """Key for the active UI context."""
        return f"profile:{profile_id}:active_context"

    @staticmethod
    def selected_reflection_id(profile_id: str) -> str:
        """Key for the selected reflection pointer."""
        return f"profile:{profile_id}:selected_reflection_id"

    @classmethod
    def all_for_profile(cls, profile_id: str) -> list[str]:
        return [
            cls.reflections(profile_id),
            cls.chat_sessions(profile_id),
            cls.active_context(profile_id),
            cls.selected_reflection_id(profile_id),
        ]
