"""Health, readiness and build-version probe schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field
from sqlmodel import SQLModel


class HealthStatusResponse(SQLModel):
    """Standard payload for service liveness/readiness checks."""

    ok: bool = Field(
        description="Indicates whether the probe check succeeded.",
        examples=[True],
    )


class VersionResponse(SQLModel):
    """Deployed build metadata."""

    sha: str = Field(description="Commit SHA of the running build.", examples=["3f2c1ab"])
    msg: str = Field(default="", description="Commit message, when known.")
    branch: str = Field(default="", description="Source branch, when known.")
    ts: datetime = Field(description="Server time the probe was answered.")
