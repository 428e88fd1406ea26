"""Client-side settings for the task store."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Typed store configuration sourced from `PLANNER_*` environment variables."""

    model_config = SettingsConfigDict(env_prefix="PLANNER_", extra="ignore")

    api_base_url: str = "http://localhost:8000/api"
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    # Full-task submits retry; partial submits and deletes do not.
    submit_max_attempts: int = Field(default=3, ge=1)
    submit_backoff_seconds: float = Field(default=0.2, ge=0)
