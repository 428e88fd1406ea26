"""AI-assist endpoints: batch task edits and task extraction from images."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from google.genai import errors as genai_errors

from planner.api.deps import ASSISTANT_DEP, AUTH_DEP
from planner.core.auth import AuthContext
from planner.core.logging import get_logger
from planner.schemas.tasks import (
    AIEditRequest,
    AIEditResponse,
    ParseImageRequest,
    ParseImageResponse,
)
from planner.services.gemini import (
    GeminiAssistant,
    InvalidImageError,
    MalformedAIResponseError,
)

router = APIRouter(tags=["ai"])
logger = get_logger(__name__)


@router.post("/ai-edit-tasks", response_model=AIEditResponse)
async def ai_edit_tasks(
    payload: AIEditRequest,
    auth: AuthContext = AUTH_DEP,
    assistant: GeminiAssistant = ASSISTANT_DEP,
) -> AIEditResponse:
    """Apply one natural-language instruction to a batch of tasks. Nothing is persisted."""
    if not payload.tasks:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No tasks provided")
    if not payload.prompt.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No prompt provided")
    try:
        edited = await assistant.edit_tasks(payload.tasks, payload.prompt.strip())
    except MalformedAIResponseError as exc:
        logger.warning("ai.edit.malformed_response", extra={"uid": auth.uid, "error": str(exc)})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except genai_errors.APIError as exc:
        logger.error("ai.edit.failed", extra={"uid": auth.uid, "error": str(exc)[:300]})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to process AI edit",
        ) from exc
    return AIEditResponse(edited_tasks=edited)


@router.post("/parse-image", response_model=ParseImageResponse)
async def parse_image(
    payload: ParseImageRequest,
    auth: AuthContext = AUTH_DEP,
    assistant: GeminiAssistant = ASSISTANT_DEP,
) -> ParseImageResponse:
    """Extract candidate tasks from a screenshot or photo."""
    if not payload.image:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No image provided")
    try:
        tasks, raw = await assistant.extract_tasks(payload.image, payload.instructions)
    except InvalidImageError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except MalformedAIResponseError as exc:
        logger.warning("ai.parse_image.malformed_response", extra={"uid": auth.uid})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": str(exc), "raw": exc.raw},
        ) from exc
    except genai_errors.APIError as exc:
        logger.error("ai.parse_image.failed", extra={"uid": auth.uid, "error": str(exc)[:300]})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to parse image",
        ) from exc
    return ParseImageResponse(tasks=tasks, raw=raw)
