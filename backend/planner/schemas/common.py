"""Shared schema base classes and envelopes."""

from __future__ import annotations

from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig


class CamelModel(SQLModel):
    """Schema base that reads and writes camelCase JSON keys."""

    model_config = SQLModelConfig(alias_generator=to_camel, populate_by_name=True)


class SuccessResponse(CamelModel):
    """Bare acknowledgement payload."""

    success: bool = True
