"""
Global exception handlers for FastAPI.

Maps domain exceptions to the {"success": false, "error", "code"} envelope,
eliminating try/except boilerplate from routers. Register with
register_exception_handlers(app).
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    400: "BAD_REQUEST",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}


def error_response(status_code: int, error: str, code: str) -> JSONResponse:
    """Build a standardized error JSON response."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": error, "code": code},
    )


def _format_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid value")
    return f"Invalid request: {location}: {message}" if location else f"Invalid request: {message}"


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain exception handlers on the FastAPI app."""
    from reflection_coach.models.chat import ChatMessageValidationError, ChatSendInProgressError
    from reflection_coach.models.context import ContextUnavailableError
    from reflection_coach.models.evaluation import EvaluationContractError
    from reflection_coach.models.reflection import (
        EvaluationInProgressError,
        ReflectionNotFoundError,
        ReflectionValidationError,
    )
    from reflection_coach.services.openai_client import (
        OpenAINotConfiguredError,
        OpenAIServiceError,
        OpenAITimeoutError,
    )

    # --- Framework handlers ---

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return error_response(400, _format_validation_error(exc), "VALIDATION_ERROR")

    @app.exception_handler(StarletteHTTPException)
    async def _http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        code = _HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
        response = error_response(exc.status_code, str(exc.detail), code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    # --- Reflection handlers ---

    @app.exception_handler(ReflectionNotFoundError)
    async def _reflection_not_found(
        request: Request, exc: ReflectionNotFoundError
    ) -> JSONResponse:
        return error_response(404, "Reflection not found.", "REFLECTION_NOT_FOUND")

    @app.exception_handler(ReflectionValidationError)
    async def _reflection_invalid(
        request: Request, exc: ReflectionValidationError
    ) -> JSONResponse:
        return error_response(400, str(exc) or "Invalid reflection.", "INVALID_REFLECTION")

    @app.exception_handler(EvaluationInProgressError)
    async def _evaluation_in_progress(
        request: Request, exc: EvaluationInProgressError
    ) -> JSONResponse:
        return error_response(
            409, "A reflection is already being evaluated.", "EVALUATION_IN_PROGRESS"
        )

    # --- Chat handlers ---

    @app.exception_handler(ChatMessageValidationError)
    async def _chat_message_invalid(
        request: Request, exc: ChatMessageValidationError
    ) -> JSONResponse:
        return error_response(400, str(exc) or "Invalid message.", "INVALID_MESSAGE")

    @app.exception_handler(ChatSendInProgressError)
    async def _chat_send_in_progress(
        request: Request, exc: ChatSendInProgressError
    ) -> JSONResponse:
        return error_response(409, "A message is already being sent.", "CHAT_SEND_IN_PROGRESS")

    # --- Context handlers ---

    @app.exception_handler(ContextUnavailableError)
    async def _context_unavailable(
        request: Request, exc: ContextUnavailableError
    ) -> JSONResponse:
        return error_response(409, str(exc), "CONTEXT_UNAVAILABLE")

    # --- Remote LLM handlers ---

    @app.exception_handler(EvaluationContractError)
    async def _evaluation_contract(
        request: Request, exc: EvaluationContractError
    ) -> JSONResponse:
        logger.error("Evaluation response failed validation: %s", exc)
        return error_response(500, "Invalid evaluation response format.", "INVALID_AI_RESPONSE")

    @app.exception_handler(OpenAINotConfiguredError)
    async def _openai_not_configured(
        request: Request, exc: OpenAINotConfiguredError
    ) -> JSONResponse:
        return error_response(500, "OpenAI API key not configured", "OPENAI_NOT_CONFIGURED")

    @app.exception_handler(OpenAITimeoutError)
    async def _openai_timeout(request: Request, exc: OpenAITimeoutError) -> JSONResponse:
        logger.error("OpenAI request timed out: %s", exc)
        return error_response(500, "The AI service took too long to respond.", "OPENAI_TIMEOUT")

    @app.exception_handler(OpenAIServiceError)
    async def _openai_error(request: Request, exc: OpenAIServiceError) -> JSONResponse:
        logger.error("OpenAI service error: %s", exc)
        return error_response(500, "AI service error.", "OPENAI_ERROR")

    # --- Catch-all ---

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception on %s %s",
            request.method,
            request.url.path,
            extra={"path": request.url.path, "method": request.method},
        )
        return error_response(500, "Internal server error.", "INTERNAL_ERROR")
