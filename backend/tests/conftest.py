"""Shared pytest fixtures for test suite."""

from typing import Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from reflection_coach.core.rate_limit import limiter
from reflection_coach.models.evaluation import StructuredResponse
from reflection_coach.models.moderation import ModerationResult
from reflection_coach.services.persistence import PersistenceService

# =============================================================================
# Storage Fixtures
# =============================================================================


class FakeStorageClient:
    """Dict-backed stand-in for the Redis client (get/set/delete/ping)."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> bool:
        self.data[key] = value
        return True

    def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    def ping(self) -> bool:
        return True


@pytest.fixture
def storage_client() -> FakeStorageClient:
    """Empty in-memory storage client."""
    return FakeStorageClient()


@pytest.fixture
def persistence(storage_client) -> PersistenceService:
    """Persistence adapter for profile 'test-profile' over the fake client."""
    return PersistenceService("test-profile", client=storage_client)


@pytest.fixture
def failing_storage_client():
    """Storage client whose every call raises."""
    client = MagicMock()
    client.get.side_effect = ConnectionError("storage down")
    client.set.side_effect = ConnectionError("storage down")
    client.delete.side_effect = ConnectionError("storage down")
    return client


# =============================================================================
# Evaluation Fixtures
# =============================================================================


def make_feedback(
    score: float = 80,
    status: str = "good",
    happened: bool = True,
    feeling: bool = True,
    next_: bool = True,
) -> StructuredResponse:
    """Build a StructuredResponse from its wire (camelCase) form."""
    return StructuredResponse.model_validate(
        {
            "feedback": {
                "happened": {
                    "pass": happened,
                    "remarks": "Clear description of the event.",
                    "suggestions": [] if happened else ["Describe what happened in class."],
                },
                "feeling": {
                    "pass": feeling,
                    "remarks": "Feelings are named.",
                    "suggestions": [] if feeling else ["Say how you felt about it."],
                },
                "next": {
                    "pass": next_,
                    "remarks": "A next step is given.",
                    "suggestions": [] if next_ else ["Add one thing you will try next."],
                },
            },
            "suggestions": ["Keep it up."],
            "overallScore": score,
            "status": status,
        }
    )


@pytest.fixture
def structured_feedback() -> StructuredResponse:
    """A 'good' evaluation scoring 80."""
    return make_feedback()


@pytest.fixture
def valid_reflection_text() -> str:
    """Four-sentence reflection that passes every local rule."""
    return (
        "Today I worked on fractions with my group. "
        "I felt proud when we solved the last problem. "
        "It was hard at first. "
        "Next time I will ask for help sooner."
    )


@pytest.fixture
def mock_openai_client():
    """OpenAIClient mock with a clean moderation result by default."""
    client = MagicMock()
    client.is_configured = True
    client.model = "gpt-5"
    client.moderate = AsyncMock(return_value=ModerationResult(flagged=False, categories={}))
    client.create_response = AsyncMock()
    return client


# =============================================================================
# Rate Limiting
# =============================================================================


@pytest.fixture(autouse=True)
def disable_rate_limiting():
    """Endpoints are called directly in unit tests; slowapi needs a real Request."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous


@pytest.fixture
def feedback_factory():
    """Factory for StructuredResponse objects with chosen score/status/pass flags."""
    return make_feedback
