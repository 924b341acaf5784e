"""
Remote function endpoints used by the journal client.

Endpoints:
- POST /evaluate-reflection: Moderate and score a reflection
- POST /chat: Moderate and answer a coaching question

Both return 200 for scored/answered and for flagged content; request
validation failures are 400 and service failures 500 (see core.exceptions).
"""

import logging
from typing import Union

from fastapi import APIRouter, Depends, Request

from reflection_coach.core.constants import REMOTE_CALL_RATE_LIMIT
from reflection_coach.core.rate_limit import limiter
from reflection_coach.models.chat import ChatFunctionResponse, ChatRequest
from reflection_coach.models.evaluation import (
    EvaluateReflectionOutcome,
    EvaluateReflectionRequest,
    EvaluateReflectionResponse,
)
from reflection_coach.models.moderation import FlaggedResponse
from reflection_coach.services.chat_service import ChatService
from reflection_coach.services.evaluation_service import EvaluationService
from reflection_coach.services.scoring import check_reflection_similarity

logger = logging.getLogger(__name__)

router = APIRouter()

REFLECTION_FLAGGED_MESSAGE = "The reflection content requires adult review"
CHAT_FLAGGED_MESSAGE = "Your message requires adult review"


# =============================================================================
# Dependency Injection
# =============================================================================


def get_evaluation_service() -> EvaluationService:
    """Get EvaluationService instance."""
    return EvaluationService()


def get_chat_service() -> ChatService:
    """Get ChatService instance."""
    return ChatService()


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/evaluate-reflection", response_model=EvaluateReflectionOutcome)
@limiter.limit(REMOTE_CALL_RATE_LIMIT)
async def evaluate_reflection(
    request: Request,
    evaluation_request: EvaluateReflectionRequest,
    evaluation_service: EvaluationService = Depends(get_evaluation_service),
) -> EvaluateReflectionOutcome:
    """
    Score a reflection on the happened / feeling / next rubric.

    Flagged text is never scored. A close match with one of the supplied past
    passing reflections adds an advisory similarityWarning; it never blocks.
    """
    result = await evaluation_service.evaluate(evaluation_request.reflection_text)
    if result.flagged or result.data is None:
        return FlaggedResponse(message=REFLECTION_FLAGGED_MESSAGE, categories=result.categories)

    return EvaluateReflectionResponse(
        data=result.data,
        model_used=result.model_used,
        similarity_warning=check_reflection_similarity(
            evaluation_request.reflection_text,
            evaluation_request.past_passing_reflections,
        ),
    )


@router.post("/chat", response_model=Union[ChatFunctionResponse, FlaggedResponse])
@limiter.limit(REMOTE_CALL_RATE_LIMIT)
async def chat(
    request: Request,
    chat_request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> Union[ChatFunctionResponse, FlaggedResponse]:
    """Answer a student's question about their reflection."""
    result = await chat_service.chat(
        message=chat_request.message,
        reflection_text=chat_request.reflection_text,
        chat_history=chat_request.chat_history,
        context=chat_request.context,
        current_feedback=chat_request.current_feedback,
    )
    if result.flagged or result.data is None:
        return FlaggedResponse(message=CHAT_FLAGGED_MESSAGE, categories=result.categories)

    return ChatFunctionResponse(data=result.data, model_used=result.model_used)
