"""
Reflection journal endpoints.

Endpoints (static routes before parameterized):
- GET /: List reflections (optionally filtered by status)
- POST /: Create a reflection
- DELETE /: Clear every reflection, chat session and stored context
- GET /stats: Counts by status
- GET /latest: Most recently created reflection
- GET /selected: Current selection
- DELETE /selected: Clear the selection
- POST /draft: Save text without evaluating
- POST /submit: Save and evaluate
- POST /analyze: Keyword check of rubric coverage
- GET /{reflection_id}: Get one reflection
- PUT /{reflection_id}: Replace its text
- DELETE /{reflection_id}: Delete it with its chat session and feedback
- PATCH /{reflection_id}/status: Set its status
- POST /{reflection_id}/select: Select it
- GET /{reflection_id}/feedback: Feedback from its last evaluation
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from reflection_coach.core.constants import REMOTE_CALL_RATE_LIMIT
from reflection_coach.core.profile import get_workspace
from reflection_coach.core.rate_limit import limiter
from reflection_coach.models.reflection import (
    AnalyzeReflectionRequest,
    CreateReflectionRequest,
    Reflection,
    ReflectionFeedbackResponse,
    ReflectionListResponse,
    ReflectionStats,
    ReflectionStatus,
    ReflectionTextRequest,
    RequirementAnalysis,
    SelectionResponse,
    SubmitReflectionResponse,
    UpdateReflectionRequest,
    UpdateReflectionStatusRequest,
)
from reflection_coach.services.scoring import get_display_score
from reflection_coach.services.validation import analyze_reflection_requirements
from reflection_coach.services.workspace import Workspace

logger = logging.getLogger(__name__)

router = APIRouter()


# =============================================================================
# Endpoints (static routes before parameterized)
# =============================================================================


@router.get("", response_model=ReflectionListResponse)
async def list_reflections(
    status: Optional[ReflectionStatus] = Query(None),
    workspace: Workspace = Depends(get_workspace),
) -> ReflectionListResponse:
    """List reflections, newest first."""
    store = workspace.reflections
    reflections = (
        store.get_reflections_by_status(status) if status is not None else store.reflections
    )
    return ReflectionListResponse(
        reflections=reflections,
        selected_reflection_id=store.selected_reflection_id,
        total=len(reflections),
    )


@router.post("", response_model=Reflection, status_code=201)
async def create_reflection(
    body: CreateReflectionRequest,
    workspace: Workspace = Depends(get_workspace),
) -> Reflection:
    """Create a pending reflection and select it."""
    return workspace.create_reflection(body.text, body.chat_session_id)


@router.delete("", status_code=204)
async def clear_reflections(workspace: Workspace = Depends(get_workspace)) -> None:
    workspace.reset()


@router.get("/stats", response_model=ReflectionStats)
async def get_stats(workspace: Workspace = Depends(get_workspace)) -> ReflectionStats:
    return workspace.reflections.get_stats()


@router.get("/latest", response_model=Optional[Reflection])
async def get_latest_reflection(
    workspace: Workspace = Depends(get_workspace),
) -> Optional[Reflection]:
    return workspace.reflections.get_latest_reflection()


@router.get("/selected", response_model=SelectionResponse)
async def get_selected_reflection(
    workspace: Workspace = Depends(get_workspace),
) -> SelectionResponse:
    store = workspace.reflections
    return SelectionResponse(
        selected_reflection_id=store.selected_reflection_id,
        reflection=store.get_selected_reflection(),
    )


@router.delete("/selected", response_model=SelectionResponse)
async def clear_selection(workspace: Workspace = Depends(get_workspace)) -> SelectionResponse:
    workspace.reflections.clear_selection()
    return SelectionResponse()


@router.post("/draft", response_model=Reflection)
async def save_draft(
    body: ReflectionTextRequest,
    workspace: Workspace = Depends(get_workspace),
) -> Reflection:
    """
    Save text without evaluating it.

    Updates the given (or selected) reflection, or creates one, and marks it
    in progress. Only the length rule applies to drafts.
    """
    return workspace.save_draft(body.text, body.reflection_id)


@router.post("/submit", response_model=SubmitReflectionResponse)
@limiter.limit(REMOTE_CALL_RATE_LIMIT)
async def submit_reflection(
    request: Request,
    body: ReflectionTextRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SubmitReflectionResponse:
    """
    Save and evaluate a reflection.

    Returns 200 with flagged=true (status unchanged) when moderation flags the
    text. Returns 409 while another submission of this profile is evaluating.
    """
    return await workspace.submit_reflection(body.text, body.reflection_id)


@router.post("/analyze", response_model=RequirementAnalysis)
async def analyze_reflection(body: AnalyzeReflectionRequest) -> RequirementAnalysis:
    return analyze_reflection_requirements(body.text)


@router.get("/{reflection_id}", response_model=Reflection)
async def get_reflection(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> Reflection:
    return workspace.require_reflection(reflection_id)


@router.put("/{reflection_id}", response_model=Reflection)
async def update_reflection(
    reflection_id: str,
    body: UpdateReflectionRequest,
    workspace: Workspace = Depends(get_workspace),
) -> Reflection:
    """Replace the text of a reflection; bumps its version."""
    return workspace.update_reflection_text(reflection_id, body.text)


@router.delete("/{reflection_id}", status_code=204)
async def delete_reflection(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> None:
    workspace.delete_reflection(reflection_id)


@router.patch("/{reflection_id}/status", response_model=Reflection)
async def update_reflection_status(
    reflection_id: str,
    body: UpdateReflectionStatusRequest,
    workspace: Workspace = Depends(get_workspace),
) -> Reflection:
    return workspace.update_reflection_status(reflection_id, body.status)


@router.post("/{reflection_id}/select", response_model=SelectionResponse)
async def select_reflection(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> SelectionResponse:
    reflection = workspace.select_reflection(reflection_id)
    return SelectionResponse(selected_reflection_id=reflection.id, reflection=reflection)


@router.get("/{reflection_id}/feedback", response_model=ReflectionFeedbackResponse)
async def get_reflection_feedback(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> ReflectionFeedbackResponse:
    """Feedback from the reflection's last evaluation in this process, if any."""
    workspace.require_reflection(reflection_id)
    feedback = workspace.get_feedback(reflection_id)
    return ReflectionFeedbackResponse(
        reflection_id=reflection_id,
        feedback=feedback,
        display_score=get_display_score(feedback.overall_score) if feedback else None,
    )
