"""Unit tests for the evaluation boundary.

Tests:
- evaluate() - scored, flagged short-circuit, contract failures
- parse_structured_response() - schema strictness
- EVALUATION_RESPONSE_FORMAT / build_evaluation_prompt()
"""

import json

import pytest

from reflection_coach.models.evaluation import EvaluationContractError, EvaluationStatus
from reflection_coach.models.moderation import ModerationResult
from reflection_coach.services.evaluation_service import (
    EVALUATION_RESPONSE_FORMAT,
    EvaluationService,
    build_evaluation_prompt,
    parse_structured_response,
)
from reflection_coach.services.openai_client import ResponseResult


def _payload(**overrides) -> dict:
    item = {"pass": True, "remarks": "Nice work.", "suggestions": []}
    payload = {
        "feedback": {"happened": dict(item), "feeling": dict(item), "next": dict(item)},
        "suggestions": ["Add one detail."],
        "overallScore": 82,
        "status": "good",
    }
    payload.update(overrides)
    return payload


# =============================================================================
# parse_structured_response
# =============================================================================


class TestParseStructuredResponse:
    @pytest.mark.unit
    def test_valid_payload(self) -> None:
        result = parse_structured_response(json.dumps(_payload()))

        assert result.overall_score == 82
        assert result.status == EvaluationStatus.GOOD
        assert result.feedback.happened.pass_ is True

    @pytest.mark.unit
    def test_not_json(self) -> None:
        with pytest.raises(EvaluationContractError):
            parse_structured_response("Sure! Here is your feedback")

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "overrides",
        [
            {"overallScore": 101},
            {"overallScore": -1},
            {"status": "perfect"},
            {"extra": "field"},
            {"feedback": {"happened": {"pass": True, "remarks": "x"}}},
            {"overallScore": "80"},
            {"overallScore": True},
        ],
    )
    def test_schema_violations(self, overrides) -> None:
        with pytest.raises(EvaluationContractError):
            parse_structured_response(json.dumps(_payload(**overrides)))

    @pytest.mark.unit
    def test_snake_case_keys_rejected(self) -> None:
        payload = _payload()
        payload["overall_score"] = payload.pop("overallScore")

        with pytest.raises(EvaluationContractError):
            parse_structured_response(json.dumps(payload))

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "item",
        [
            {"pass_": "yes", "remarks": "ok"},
            {"pass": "yes", "remarks": "ok"},
            {"pass": 1, "remarks": "ok"},
        ],
    )
    def test_pass_flag_must_be_json_boolean(self, item) -> None:
        payload = _payload()
        payload["feedback"]["happened"] = item

        with pytest.raises(EvaluationContractError):
            parse_structured_response(json.dumps(payload))

    @pytest.mark.unit
    def test_float_score_accepted(self) -> None:
        result = parse_structured_response(json.dumps(_payload(overallScore=77.5)))

        assert result.overall_score == 77.5

    @pytest.mark.unit
    def test_missing_field(self) -> None:
        payload = _payload()
        del payload["suggestions"]

        with pytest.raises(EvaluationContractError):
            parse_structured_response(json.dumps(payload))


# =============================================================================
# Request format and prompt
# =============================================================================


class TestRequestFormat:
    @pytest.mark.unit
    def test_schema_is_strict_and_complete(self) -> None:
        schema = EVALUATION_RESPONSE_FORMAT["schema"]

        assert EVALUATION_RESPONSE_FORMAT["strict"] is True
        assert schema["additionalProperties"] is False
        assert set(schema["required"]) == {"feedback", "suggestions", "overallScore", "status"}
        assert schema["properties"]["status"]["enum"] == ["needs-work", "good", "excellent"]

    @pytest.mark.unit
    def test_prompt_embeds_reflection_and_rubric(self) -> None:
        prompt = build_evaluation_prompt("I went to the park.")

        assert '"I went to the park."' in prompt
        assert "What happened today?" in prompt
        assert "How did it make them feel?" in prompt
        assert "What will they do next/tomorrow?" in prompt


# =============================================================================
# evaluate
# =============================================================================


class TestEvaluate:
    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_scored(self, mock_openai_client) -> None:
        mock_openai_client.create_response.return_value = ResponseResult(
            text=json.dumps(_payload()), model="gpt-5-2025"
        )

        result = await EvaluationService(client=mock_openai_client).evaluate("My reflection.")

        assert result.flagged is False
        assert result.data.overall_score == 82
        assert result.model_used == "gpt-5-2025"
        kwargs = mock_openai_client.create_response.call_args.kwargs
        assert kwargs["text_format"] is EVALUATION_RESPONSE_FORMAT

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_flagged_never_scored(self, mock_openai_client) -> None:
        mock_openai_client.moderate.return_value = ModerationResult(
            flagged=True, categories={"self-harm": True}
        )

        result = await EvaluationService(client=mock_openai_client).evaluate("My reflection.")

        assert result.flagged is True
        assert result.data is None
        assert result.categories == {"self-harm": True}
        mock_openai_client.create_response.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.unit
    async def test_contract_error_propagates(self, mock_openai_client) -> None:
        mock_openai_client.create_response.return_value = ResponseResult(text="not json")

        with pytest.raises(EvaluationContractError):
            await EvaluationService(client=mock_openai_client).evaluate("My reflection.")
