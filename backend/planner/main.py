"""FastAPI application entrypoint and router wiring for the planner backend."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from planner.api.ai import router as ai_router
from planner.api.meta import router as meta_router
from planner.api.tasks import router as tasks_router
from planner.core.config import settings
from planner.core.error_handling import install_error_handling
from planner.core.logging import configure_logging, get_logger
from planner.schemas.health import HealthStatusResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Service liveness/readiness probes used by infrastructure checks.",
    },
    {
        "name": "tasks",
        "description": "Task CRUD for the authenticated user, persisted in Notion.",
    },
    {
        "name": "ai",
        "description": "Stateless Gemini assists: batch edits and image task extraction.",
    },
    {
        "name": "meta",
        "description": "Deployment metadata.",
    },
]


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    """Log configuration state on startup."""
    logger.info(
        "app.lifecycle.starting",
        extra={
            "environment": settings.environment,
            "notion_configured": settings.notion_configured,
            "firebase_configured": settings.firebase_configured,
            "gemini_configured": bool(settings.gemini_api_key.strip()),
        },
    )
    try:
        yield
    finally:
        logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="Planner API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("app.cors.enabled", extra={"origins_count": len(origins)})
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    responses={
        status.HTTP_200_OK: {
            "description": "Service is alive.",
            "content": {"application/json": {"example": {"ok": True}}},
        }
    },
)
def health() -> HealthStatusResponse:
    """Lightweight liveness probe endpoint."""
    return HealthStatusResponse(ok=True)


@app.get("/healthz", tags=["health"], response_model=HealthStatusResponse)
def healthz() -> HealthStatusResponse:
    """Alias liveness probe endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get("/readyz", tags=["health"], response_model=HealthStatusResponse)
def readyz() -> HealthStatusResponse:
    """Readiness probe endpoint for service orchestration checks."""
    return HealthStatusResponse(ok=True)


api = APIRouter(prefix="/api")
api.include_router(tasks_router)
api.include_router(ai_router)
api.include_router(meta_router)
app.include_router(api)

logger.debug("app.routes.registered", extra={"count": len(app.routes)})
