"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BACKEND_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ENV_FILE = BACKEND_ROOT / ".env"
NOTION_KEY_PLACEHOLDERS = frozenset({"placeholder_key"})
NOTION_DATABASE_PLACEHOLDERS = frozenset({"placeholder_id"})


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        # Load `backend/.env` regardless of current working directory.
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"
    cors_origins: str = ""

    # Notion (task persistence)
    notion_api_key: str = ""
    notion_database_id: str = ""
    notion_api_url: str = "https://api.notion.com/v1"
    notion_version: str = "2022-06-28"
    notion_page_size: int = Field(default=100, ge=1, le=100)

    # Firebase Admin (ID token verification)
    firebase_project_id: str = ""
    firebase_client_email: str = ""
    firebase_private_key: str = ""

    # Gemini (AI assist)
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # Build metadata surfaced by /api/version
    commit_sha: str = Field(
        default="unknown",
        validation_alias=AliasChoices("vercel_git_commit_sha", "github_sha"),
    )
    commit_message: str = Field(
        default="",
        validation_alias=AliasChoices("vercel_git_commit_message"),
    )
    commit_branch: str = Field(
        default="",
        validation_alias=AliasChoices("vercel_git_commit_ref", "github_ref_name"),
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False
    request_log_slow_ms: int = Field(default=1000, ge=0)
    request_log_include_health: bool = False

    @model_validator(mode="after")
    def _normalize(self) -> Self:
        self.notion_api_key = self.notion_api_key.strip()
        self.notion_database_id = self.notion_database_id.strip()
        # Service-account keys are commonly stored with escaped newlines.
        self.firebase_private_key = self.firebase_private_key.replace("\\n", "\n")
        return self

    @property
    def notion_configured(self) -> bool:
        return bool(
            self.notion_api_key
            and self.notion_database_id
            and self.notion_api_key not in NOTION_KEY_PLACEHOLDERS
            and self.notion_database_id not in NOTION_DATABASE_PLACEHOLDERS,
        )

    @property
    def firebase_configured(self) -> bool:
        return bool(
            self.firebase_project_id and self.firebase_client_email and self.firebase_private_key,
        )


settings = Settings()
