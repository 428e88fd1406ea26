"""Build metadata endpoint."""

from __future__ import annotations

from fastapi import APIRouter

from planner.core.config import settings
from planner.core.time import utcnow
from planner.schemas.health import VersionResponse

router = APIRouter(tags=["meta"])


@router.get("/version", response_model=VersionResponse)
def version() -> VersionResponse:
    """Report the deployed commit; no authentication required."""
    return VersionResponse(
        sha=settings.commit_sha or "unknown",
        msg=settings.commit_message,
        branch=settings.commit_branch,
        ts=utcnow(),
    )
