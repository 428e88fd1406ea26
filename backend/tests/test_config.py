# ruff: noqa: INP001
from __future__ import annotations

import pytest

from planner.core.config import Settings
from planner.store.config import StoreSettings


def test_placeholder_notion_values_count_as_unconfigured() -> None:
    assert Settings(notion_api_key="placeholder_key", notion_database_id="db").notion_configured is False
    assert Settings(notion_api_key="ntn_x", notion_database_id="placeholder_id").notion_configured is False
    assert Settings(notion_api_key=" ntn_x ", notion_database_id=" db ").notion_configured is True


def test_firebase_private_key_newlines_are_unescaped() -> None:
    settings = Settings(
        firebase_project_id="proj",
        firebase_client_email="svc@proj.iam.gserviceaccount.com",
        firebase_private_key="-----BEGIN-----\\nabc\\n-----END-----",
    )

    assert settings.firebase_private_key == "-----BEGIN-----\nabc\n-----END-----"
    assert settings.firebase_configured is True


def test_version_metadata_reads_ci_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_SHA", "3f2c1ab")
    monkeypatch.setenv("GITHUB_REF_NAME", "main")

    settings = Settings()

    assert settings.commit_sha == "3f2c1ab"
    assert settings.commit_branch == "main"


def test_store_settings_use_planner_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PLANNER_API_BASE_URL", "https://planner.example.com/api")
    monkeypatch.setenv("PLANNER_SUBMIT_MAX_ATTEMPTS", "5")

    config = StoreSettings()

    assert config.api_base_url == "https://planner.example.com/api"
    assert config.submit_max_attempts == 5
    assert config.submit_backoff_seconds == pytest.approx(0.2)
