"""
Context navigation endpoints (write/edit, feedback, chat views).

Endpoints:
- GET /context: Active context, availability and neighbours
- PUT /context: Switch context (409 when the target needs a reflection)
- POST /context/reset: Back to write/edit
"""

from fastapi import APIRouter, Depends

from reflection_coach.core.profile import get_workspace
from reflection_coach.models.context import ContextStateResponse, SwitchContextRequest
from reflection_coach.services.workspace import Workspace

router = APIRouter()


@router.get("/context", response_model=ContextStateResponse)
async def get_context(workspace: Workspace = Depends(get_workspace)) -> ContextStateResponse:
    return workspace.context_state()


@router.put("/context", response_model=ContextStateResponse)
async def switch_context(
    body: SwitchContextRequest,
    workspace: Workspace = Depends(get_workspace),
) -> ContextStateResponse:
    return await workspace.switch_context(body.context)


@router.post("/context/reset", response_model=ContextStateResponse)
async def reset_context(workspace: Workspace = Depends(get_workspace)) -> ContextStateResponse:
    workspace.navigator.reset_context()
    return workspace.context_state()
