"""
Chat endpoints: the coaching conversation attached to each reflection.

Endpoints:
- GET /reflections/{reflection_id}/messages: Messages in display order
- POST /reflections/{reflection_id}/messages: Send a message, get the reply
- DELETE /reflections/{reflection_id}/messages: Clear the messages
- DELETE /chat-sessions/{reflection_id}: Delete the session
"""

import logging

from fastapi import APIRouter, Depends, Request

from reflection_coach.core.constants import REMOTE_CALL_RATE_LIMIT
from reflection_coach.core.profile import get_workspace
from reflection_coach.core.rate_limit import limiter
from reflection_coach.models.chat import (
    ChatMessagesResponse,
    SendChatMessageRequest,
    SendChatMessageResponse,
)
from reflection_coach.services.workspace import Workspace

logger = logging.getLogger(__name__)

router = APIRouter()


def _messages_response(workspace: Workspace, reflection_id: str) -> ChatMessagesResponse:
    session = workspace.chat.get_chat_session(reflection_id)
    messages = workspace.chat.get_messages_for_reflection(reflection_id)
    return ChatMessagesResponse(
        reflection_id=reflection_id,
        session_id=session.id if session else None,
        messages=messages,
        message_count=len(messages),
        is_sending=workspace.chat.is_sending,
    )


@router.get("/reflections/{reflection_id}/messages", response_model=ChatMessagesResponse)
async def get_messages(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> ChatMessagesResponse:
    workspace.require_reflection(reflection_id)
    return _messages_response(workspace, reflection_id)


@router.post("/reflections/{reflection_id}/messages", response_model=SendChatMessageResponse)
@limiter.limit(REMOTE_CALL_RATE_LIMIT)
async def send_message(
    request: Request,
    reflection_id: str,
    body: SendChatMessageRequest,
    workspace: Workspace = Depends(get_workspace),
) -> SendChatMessageResponse:
    """
    Send a student message and get the coach's reply.

    The reply turn is always appended: a remote failure or flagged message
    yields the fallback assistant message with success=false.
    """
    return await workspace.send_chat_message(reflection_id, body.message)


@router.delete("/reflections/{reflection_id}/messages", response_model=ChatMessagesResponse)
async def clear_messages(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> ChatMessagesResponse:
    workspace.require_reflection(reflection_id)
    workspace.chat.clear_messages(reflection_id)
    return _messages_response(workspace, reflection_id)


@router.delete("/chat-sessions/{reflection_id}", status_code=204)
async def delete_chat_session(
    reflection_id: str,
    workspace: Workspace = Depends(get_workspace),
) -> None:
    workspace.chat.delete_chat_session(reflection_id)
