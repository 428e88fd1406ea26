"""Reusable FastAPI dependencies for auth, persistence and AI assist.

Routes compose these instead of constructing vendor clients directly, which
keeps the vendor wiring overridable through `app.dependency_overrides`.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, status

from planner.core.auth import AuthContext, get_auth_context, require_user_email
from planner.core.config import settings
from planner.services.gemini import GeminiAssistant, GeminiNotConfiguredError
from planner.services.notion import NotionTaskRepository

AUTH_DEP = Depends(get_auth_context)
USER_DEP = Depends(require_user_email)

_repository: NotionTaskRepository | None = None


def get_task_repository() -> NotionTaskRepository:
    """Return the process-wide Notion repository, created lazily."""
    global _repository
    if _repository is None:
        _repository = NotionTaskRepository(settings)
    return _repository


def get_assistant() -> GeminiAssistant:
    """Build a Gemini assistant or fail with 500 when no key is configured."""
    try:
        return GeminiAssistant(settings.gemini_api_key, settings.gemini_model)
    except GeminiNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc


REPOSITORY_DEP = Depends(get_task_repository)
ASSISTANT_DEP = Depends(get_assistant)

__all__ = [
    "ASSISTANT_DEP",
    "AUTH_DEP",
    "REPOSITORY_DEP",
    "USER_DEP",
    "AuthContext",
    "get_assistant",
    "get_task_repository",
]
