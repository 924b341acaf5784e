"""
Reflection evaluation boundary.

Handles:
- Moderation pre-check (flagged text is never sent for scoring)
- Scoring prompt over the three rubric dimensions
- Strict JSON-schema structured output
- Parse + schema validation of the remote output

A parse or schema failure is raised as EvaluationContractError. It is never
coerced into a partial result and never retried.
"""

import logging
from typing import Optional

from pydantic import ValidationError

from reflection_coach.core.config import get_settings
from reflection_coach.core.constants import EVALUATION_REMARK_MAX_WORDS
from reflection_coach.models.evaluation import (
    EvaluationContractError,
    EvaluationResult,
    StructuredResponse,
)
from reflection_coach.services.openai_client import OpenAIClient

logger = logging.getLogger(__name__)

_FEEDBACK_ITEM_SCHEMA = {
    "type": "object",
    "properties": {
        "pass": {"type": "boolean"},
        "remarks": {"type": "string"},
        "suggestions": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["pass", "remarks", "suggestions"],
    "additionalProperties": False,
}

EVALUATION_RESPONSE_FORMAT = {
    "type": "json_schema",
    "name": "ReflectionEvaluation",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "feedback": {
                "type": "object",
                "properties": {
                    "happened": _FEEDBACK_ITEM_SCHEMA,
                    "feeling": _FEEDBACK_ITEM_SCHEMA,
                    "next": _FEEDBACK_ITEM_SCHEMA,
                },
                "required": ["happened", "feeling", "next"],
                "additionalProperties": False,
            },
            "suggestions": {"type": "array", "items": {"type": "string"}},
            "overallScore": {"type": "number"},
            "status": {"type": "string", "enum": ["needs-work", "good", "excellent"]},
        },
        "required": ["feedback", "suggestions", "overallScore", "status"],
        "additionalProperties": False,
    },
}


def build_evaluation_prompt(reflection_text: str) -> str:
    """Scoring instructions for a 6-7th grade ELL writing coach."""
    return f"""You are a supportive 6-7th grade ELL writing coach. Evaluate this student's daily reflection and provide encouraging, constructive feedback.

Student's Reflection: "{reflection_text}"

Please evaluate the reflection based on these three key requirements:
1. What happened today? (Did they describe an event or experience?)
2. How did it make them feel? (Did they express emotions or feelings?)
3. What will they do next/tomorrow? (Did they mention future plans or actions?)

Guidelines for evaluation:
- Be encouraging and supportive, never harsh or critical
- Provide specific, actionable feedback
- Use age-appropriate language (6-7th grade level)
- Focus on what they did well first, then suggest improvements
- Keep remarks under {EVALUATION_REMARK_MAX_WORDS} words each
- Give hints and suggestions, never direct answers
- Consider this is for ELL students - be patient and clear

Judge each requirement independently as pass or fail. Give overall suggestions, an overallScore from 0 to 100, and a status of "needs-work", "good" or "excellent".

Return ONLY the JSON object described by the response schema."""


def parse_structured_response(raw: str) -> StructuredResponse:
    """
    Parse and validate remote evaluation output.

    Validation is strict: scores must be JSON numbers and pass flags JSON
    booleans. Strings are never coerced.

    Raises:
        EvaluationContractError: If the text is not JSON or does not match the schema
    """
    try:
        return StructuredResponse.model_validate_json(raw, strict=True)
    except ValidationError as e:
        logger.error("Evaluation response failed validation: %s", e.errors(include_url=False))
        raise EvaluationContractError(f"Failed to parse evaluation response: {e}") from e


class EvaluationService:
    """Scores reflections through the remote model."""

    def __init__(self, client: Optional[OpenAIClient] = None) -> None:
        self._client = client

    @property
    def client(self) -> OpenAIClient:
        """Lazy-load the OpenAI client on first access."""
        if self._client is None:
            self._client = OpenAIClient()
        return self._client

    async def evaluate(self, reflection_text: str) -> EvaluationResult:
        """
        Moderate, then score a reflection.

        Returns:
            EvaluationResult with flagged=True and no data when moderation flags
            the text, otherwise with the validated StructuredResponse.

        Raises:
            EvaluationContractError: Remote output is not a valid StructuredResponse
            OpenAIServiceError: Remote call failed or timed out
        """
        moderation = await self.client.moderate(reflection_text)
        if moderation.flagged:
            logger.info("Reflection flagged by moderation; skipping scoring")
            return EvaluationResult(flagged=True, categories=moderation.categories)

        settings = get_settings()
        result = await self.client.create_response(
            build_evaluation_prompt(reflection_text),
            max_output_tokens=settings.evaluation_max_output_tokens,
            text_format=EVALUATION_RESPONSE_FORMAT,
        )
        structured = parse_structured_response(result.text)
        logger.info(
            "Reflection evaluated: score=%s status=%s",
            structured.overall_score,
            structured.status.value,
        )
        return EvaluationResult(flagged=False, data=structured, model_used=result.model)
