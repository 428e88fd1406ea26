# ruff: noqa: INP001
"""Shared builders for store and API tests."""

from __future__ import annotations

from datetime import UTC, date, datetime
from typing import Any

from planner.schemas.tasks import Task, TaskStatus, Weekday
from planner.store.config import StoreSettings

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return NOW


def make_task(task_id: str = "page-1", **overrides: Any) -> Task:
    values: dict[str, Any] = {
        "id": task_id,
        "title": "Finish lab report",
        "due_date": date(2026, 3, 12),
        "date_created": NOW,
        "status": TaskStatus.TODO,
        "weekday": Weekday.NONE,
        "days_until_due": 2,
        "todo_items": [],
        "comments": [],
    }
    values.update(overrides)
    return Task(**values)


class FakeTaskClient:
    """In-memory stand-in for `TaskServiceClient` that records every call."""

    def __init__(self, *, max_attempts: int = 3, backoff: float = 0.2) -> None:
        self.config = StoreSettings(
            submit_max_attempts=max_attempts,
            submit_backoff_seconds=backoff,
        )
        self.calls: list[tuple[str, Any]] = []
        self.list_result: list[Task] | Exception = []
        self.create_result: Task | Exception | None = None
        self.update_results: list[Task | Exception] = []
        self.archive_error: Exception | None = None

    async def list_tasks(self) -> list[Task]:
        self.calls.append(("list", None))
        if isinstance(self.list_result, Exception):
            raise self.list_result
        return list(self.list_result)

    async def create_task(self, payload: dict[str, Any]) -> Task:
        self.calls.append(("create", payload))
        if isinstance(self.create_result, Exception):
            raise self.create_result
        assert self.create_result is not None
        return self.create_result

    async def update_task(self, server_id: str, payload: dict[str, Any]) -> Task:
        self.calls.append(("update", (server_id, payload)))
        result = self.update_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    async def archive_task(self, server_id: str) -> None:
        self.calls.append(("archive", server_id))
        if self.archive_error is not None:
            raise self.archive_error

    def calls_named(self, name: str) -> list[Any]:
        return [payload for call, payload in self.calls if call == name]
