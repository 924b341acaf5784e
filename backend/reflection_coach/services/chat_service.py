"""
Coaching chat boundary.

Builds a context-aware coaching prompt (reflection text, current feedback,
recent turns) and wraps the model's free-text reply into the fixed chat
response schema. Nothing is retried; the chat store turns failures into a
fallback assistant message.
"""

import logging
from typing import Optional, Sequence

from reflection_coach.core.config import get_settings
from reflection_coach.core.constants import CHAT_PROMPT_HISTORY_TURNS, PASSING_SCORE
from reflection_coach.models.chat import ChatHistoryItem, ChatReply, ChatResult, MessageContext
from reflection_coach.models.evaluation import FeedbackItem, StructuredResponse
from reflection_coach.services.openai_client import OpenAIClient

logger = logging.getLogger(__name__)

COACH_PERSONA = f"""You are a supportive 6-7th grade ELL writing coach helping students fix their daily reflections to pass.

Your role:
- Help students identify what's missing to get a passing score
- Give ONE specific, actionable fix at a time
- Use simple, encouraging language
- Focus on the three requirements: what happened, how they felt, what they'll do next

Guidelines:
- Keep responses under 60 words
- Give ONE clear suggestion, not a list
- Ask ONE simple question to help them think
- Be encouraging but focused on the fix
- If they have multiple issues, mention 2-3 briefly, then focus on the most important one
- IMPORTANT: If their score is {PASSING_SCORE}% or higher, say "Your reflection looks great! Ready to submit?" and stop asking for changes
- Don't be overly critical - if they have the basic elements, they should pass"""

CONTEXT_INSTRUCTIONS = {
    MessageContext.REFLECTION_HELP: (
        "Focus on helping them improve their reflection writing. Guide them to include "
        "what happened, how they felt, and what they plan to do next."
    ),
    MessageContext.FEEDBACK_DISCUSSION: (
        "Help them understand the feedback they received and how to improve their reflection."
    ),
    MessageContext.GENERAL: "Provide general help with their reflection writing.",
}

_DIMENSION_LABELS = (
    ("happened", "What happened"),
    ("feeling", "How they felt"),
    ("next", "What they'll do next"),
)


def _render_dimension(label: str, item: FeedbackItem) -> str:
    line = f"- {label}: {'PASS' if item.pass_ else 'NEEDS WORK'} - {item.remarks}"
    if item.suggestions:
        line += f" Suggestion: {item.suggestions[0]}"
    return line


def render_feedback(feedback: StructuredResponse) -> str:
    """Human-readable summary of per-dimension feedback and the overall score."""
    lines = ["Current feedback on their reflection:"]
    for field, label in _DIMENSION_LABELS:
        lines.append(_render_dimension(label, getattr(feedback.feedback, field)))
    lines.append(f"Overall score: {feedback.overall_score}%")
    return "\n".join(lines)


def build_chat_prompt(
    message: str,
    reflection_text: str = "",
    chat_history: Sequence[ChatHistoryItem] = (),
    context: MessageContext = MessageContext.GENERAL,
    current_feedback: Optional[StructuredResponse] = None,
) -> str:
    """Assemble the coaching prompt sent to the remote model."""
    sections = [COACH_PERSONA]

    if reflection_text and reflection_text.strip():
        sections.append(f'Current reflection the student is working on: "{reflection_text}"')

    if current_feedback is not None:
        sections.append(render_feedback(current_feedback))

    if chat_history:
        turns = "\n".join(
            f"{item.role.value}: {item.content}"
            for item in list(chat_history)[-CHAT_PROMPT_HISTORY_TURNS:]
        )
        sections.append(f"Recent conversation:\n{turns}")

    sections.append(CONTEXT_INSTRUCTIONS[context])
    sections.append(f'Student\'s question: "{message}"')
    return "\n\n".join(sections)


class ChatService:
    """Answers student questions about their reflection."""

    def __init__(self, client: Optional[OpenAIClient] = None) -> None:
        self._client = client

    @property
    def client(self) -> OpenAIClient:
        """Lazy-load the OpenAI client on first access."""
        if self._client is None:
            self._client = OpenAIClient()
        return self._client

    async def chat(
        self,
        message: str,
        reflection_text: str = "",
        chat_history: Sequence[ChatHistoryItem] = (),
        context: MessageContext = MessageContext.GENERAL,
        current_feedback: Optional[StructuredResponse] = None,
    ) -> ChatResult:
        """
        Moderate the student's message, then ask the coach.

        Raises:
            OpenAIServiceError: Remote call failed or timed out
        """
        moderation = await self.client.moderate(message)
        if moderation.flagged:
            logger.info("Chat message flagged by moderation; skipping reply")
            return ChatResult(flagged=True, categories=moderation.categories)

        prompt = build_chat_prompt(
            message,
            reflection_text=reflection_text,
            chat_history=chat_history,
            context=context,
            current_feedback=current_feedback,
        )
        result = await self.client.create_response(
            prompt, max_output_tokens=get_settings().chat_max_output_tokens
        )
        reply = ChatReply(response=result.text.strip(), context=context, helpful=True)
        return ChatResult(flagged=False, data=reply, model_used=result.model)
