# ruff: noqa: INP001
"""HTTP wiring of the store's task API client."""

from __future__ import annotations

import json

import httpx
import pytest
from _factories import make_task

from planner.schemas.tasks import TaskStatus
from planner.store import AuthTokenError, StoreSettings, TaskServiceClient, TaskServiceError

BASE_URL = "http://planner.test/api"


def _client(handler, token_provider=None) -> TaskServiceClient:
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return TaskServiceClient(
        token_provider,
        config=StoreSettings(api_base_url=BASE_URL),
        http_client=http_client,
    )


async def _token() -> str:
    return "id-token-1"


@pytest.mark.asyncio
async def test_requests_carry_fresh_bearer_token() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        task = make_task("page-1").model_dump(mode="json", by_alias=True)
        return httpx.Response(200, json={"tasks": [task], "success": True})

    client = _client(handler, _token)
    tasks = await client.list_tasks()
    await client.aclose()

    assert [task.id for task in tasks] == ["page-1"]
    assert seen[0].url.path == "/api/tasks"
    assert seen[0].headers["Authorization"] == "Bearer id-token-1"


@pytest.mark.asyncio
async def test_update_sends_json_body_to_task_path() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        task = make_task("page-9", status=TaskStatus.ARCHIVED)
        return httpx.Response(
            200,
            json={"task": task.model_dump(mode="json", by_alias=True), "success": True},
        )

    client = _client(handler, _token)
    task = await client.update_task("page-9", {"status": "Archived"})
    await client.aclose()

    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/api/tasks/page-9"
    assert json.loads(seen[0].content) == {"status": "Archived"}
    assert task.status == TaskStatus.ARCHIVED


@pytest.mark.asyncio
async def test_error_status_raises_task_service_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"detail": "Notion down"})

    client = _client(handler, _token)
    with pytest.raises(TaskServiceError) as exc:
        await client.archive_task("page-1")
    await client.aclose()

    assert exc.value.status_code == 500


@pytest.mark.asyncio
async def test_token_provider_failure_is_wrapped() -> None:
    async def broken() -> str:
        raise RuntimeError("signed out")

    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("request must not be sent")

    client = _client(handler, broken)
    with pytest.raises(AuthTokenError, match="Failed to get auth token: signed out"):
        await client.list_tasks()
    await client.aclose()


@pytest.mark.asyncio
async def test_parse_image_omits_blank_instructions() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={"tasks": [{"title": "Essay", "dueDate": "2026-04-01"}], "raw": "[]"},
        )

    client = _client(handler, _token)
    tasks = await client.parse_image("data:image/png;base64,AAAA")
    await client.aclose()

    assert bodies == [{"image": "data:image/png;base64,AAAA"}]
    assert tasks[0].title == "Essay"
