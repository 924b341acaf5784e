"""Unit tests for reflection router endpoints.

Tests:
- create / list / get / update / delete
- draft and submit
- selection, stats, latest, analyze, feedback
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from reflection_coach.models.evaluation import EvaluationResult
from reflection_coach.models.reflection import (
    AnalyzeReflectionRequest,
    CreateReflectionRequest,
    ReflectionNotFoundError,
    ReflectionStatus,
    ReflectionTextRequest,
    ReflectionValidationError,
    UpdateReflectionRequest,
    UpdateReflectionStatusRequest,
)
from reflection_coach.routers.reflections import (
    analyze_reflection,
    clear_selection,
    create_reflection,
    delete_reflection,
    get_latest_reflection,
    get_reflection,
    get_reflection_feedback,
    get_selected_reflection,
    get_stats,
    list_reflections,
    save_draft,
    select_reflection,
    submit_reflection,
    update_reflection,
    update_reflection_status,
)
from reflection_coach.services.workspace import Workspace

# =============================================================================
# Shared Fixtures
# =============================================================================


@pytest.fixture
def mock_evaluation_service(structured_feedback):
    service = MagicMock()
    service.evaluate = AsyncMock(return_value=EvaluationResult(data=structured_feedback))
    return service


@pytest.fixture
def workspace(persistence, mock_evaluation_service) -> Workspace:
    return Workspace(
        "test-profile",
        persistence=persistence,
        evaluation_service=mock_evaluation_service,
        chat_service=MagicMock(),
        transition_delay=0,
    )


# =============================================================================
# CRUD
# =============================================================================


class TestReflectionCrud:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_create_and_list(self, workspace) -> None:
        created = await create_reflection(
            body=CreateReflectionRequest(text="A brand new reflection."), workspace=workspace
        )

        result = await list_reflections(status=None, workspace=workspace)

        assert result.total == 1
        assert result.reflections[0].id == created.id
        assert result.selected_reflection_id == created.id

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_create_invalid_raises(self, workspace) -> None:
        with pytest.raises(ReflectionValidationError):
            await create_reflection(body=CreateReflectionRequest(text="short"), workspace=workspace)

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_list_filters_by_status(self, workspace) -> None:
        a = workspace.create_reflection("Reflection number one.")
        workspace.create_reflection("Reflection number two.")
        workspace.update_reflection_status(a.id, ReflectionStatus.PASSED)

        result = await list_reflections(status=ReflectionStatus.PASSED, workspace=workspace)

        assert [r.id for r in result.reflections] == [a.id]

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_get_update_delete(self, workspace) -> None:
        created = workspace.create_reflection("Reflection number one.")

        fetched = await get_reflection(reflection_id=created.id, workspace=workspace)
        updated = await update_reflection(
            reflection_id=created.id,
            body=UpdateReflectionRequest(text="Reflection number one, edited."),
            workspace=workspace,
        )
        await delete_reflection(reflection_id=created.id, workspace=workspace)

        assert fetched == created
        assert updated.current_version == 2
        with pytest.raises(ReflectionNotFoundError):
            await get_reflection(reflection_id=created.id, workspace=workspace)

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_update_status(self, workspace) -> None:
        created = workspace.create_reflection("Reflection number one.")

        result = await update_reflection_status(
            reflection_id=created.id,
            body=UpdateReflectionStatusRequest(status=ReflectionStatus.PASSED),
            workspace=workspace,
        )

        assert result.status == ReflectionStatus.PASSED


# =============================================================================
# Draft and submit
# =============================================================================


class TestDraftAndSubmit:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_save_draft(self, workspace) -> None:
        result = await save_draft(
            body=ReflectionTextRequest(text="Draft without sentences yet"), workspace=workspace
        )
        assert result.status == ReflectionStatus.IN_PROGRESS

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_submit_then_feedback(self, workspace, valid_reflection_text) -> None:
        submitted = await submit_reflection(
            request=MagicMock(),
            body=ReflectionTextRequest(text=valid_reflection_text),
            workspace=workspace,
        )

        feedback = await get_reflection_feedback(
            reflection_id=submitted.reflection.id, workspace=workspace
        )

        assert submitted.success is True
        assert feedback.feedback == submitted.feedback
        assert feedback.display_score == 95

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_feedback_empty_before_evaluation(self, workspace) -> None:
        created = workspace.create_reflection("Reflection number one.")

        result = await get_reflection_feedback(reflection_id=created.id, workspace=workspace)

        assert result.feedback is None
        assert result.display_score is None


# =============================================================================
# Selection and queries
# =============================================================================


class TestSelectionAndQueries:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_select_and_clear(self, workspace) -> None:
        first = workspace.create_reflection("Reflection number one.")
        workspace.create_reflection("Reflection number two.")

        selected = await select_reflection(reflection_id=first.id, workspace=workspace)
        current = await get_selected_reflection(workspace=workspace)
        cleared = await clear_selection(workspace=workspace)

        assert selected.selected_reflection_id == first.id
        assert current.reflection == first
        assert cleared.selected_reflection_id is None

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_stats_and_latest(self, workspace) -> None:
        workspace.create_reflection("Reflection number one.")
        second = workspace.create_reflection("Reflection number two.")

        stats = await get_stats(workspace=workspace)
        latest = await get_latest_reflection(workspace=workspace)

        assert stats.total == 2
        assert stats.pending == 2
        assert latest == second

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_analyze(self, valid_reflection_text) -> None:
        result = await analyze_reflection(body=AnalyzeReflectionRequest(text=valid_reflection_text))
        assert result.completeness == 3
