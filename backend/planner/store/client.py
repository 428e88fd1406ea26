"""HTTP client for the planner task API with bearer-token injection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from planner.core.logging import get_logger
from planner.schemas.tasks import (
    AIEditResponse,
    EditedTask,
    ParsedTask,
    ParseImageResponse,
    Task,
    TaskListResponse,
    TaskResponse,
)
from planner.store.config import StoreSettings

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    TokenProvider = Callable[[], Awaitable[str]]

logger = get_logger(__name__)


class TaskServiceError(RuntimeError):
    """Non-success response or transport failure from the task API."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthTokenNotConfiguredError(TaskServiceError):
    """A persistence call was attempted before a token provider was supplied."""

    def __init__(self) -> None:
        super().__init__("Auth token getter not configured")


class AuthTokenError(TaskServiceError):
    """The token provider raised while fetching a token."""


class TaskServiceClient:
    """Thin async wrapper over the `/tasks`, `/ai-edit-tasks` and `/parse-image` routes.

    The token provider is injected once at construction; each request awaits it
    for a fresh ID token.
    """

    def __init__(
        self,
        token_provider: TokenProvider | None = None,
        *,
        config: StoreSettings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or StoreSettings()
        self._token_provider = token_provider
        self._http = http_client or httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout_seconds,
        )

    @property
    def config(self) -> StoreSettings:
        return self._config

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_provider is None:
            raise AuthTokenNotConfiguredError
        try:
            token = await self._token_provider()
        except Exception as exc:
            msg = f"Failed to get auth token: {exc}"
            raise AuthTokenError(msg) from exc
        return {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = await self._auth_headers()
        try:
            response = await self._http.request(method, path, json=json, headers=headers)
        except httpx.HTTPError as exc:
            msg = f"{method} {path} failed: {exc}"
            raise TaskServiceError(msg) from exc
        if response.is_error:
            raise TaskServiceError(response.text, status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            msg = f"{method} {path} returned a non-JSON body"
            raise TaskServiceError(msg, status_code=response.status_code) from exc
        if not isinstance(body, dict):
            msg = f"{method} {path} returned an unexpected body"
            raise TaskServiceError(msg, status_code=response.status_code)
        return body

    async def list_tasks(self) -> list[Task]:
        body = await self._request("GET", "/tasks")
        return TaskListResponse.model_validate(body).tasks

    async def create_task(self, payload: dict[str, Any]) -> Task:
        body = await self._request("POST", "/tasks", json=payload)
        return TaskResponse.model_validate(body).task

    async def update_task(self, server_id: str, payload: dict[str, Any]) -> Task:
        body = await self._request("PUT", f"/tasks/{server_id}", json=payload)
        return TaskResponse.model_validate(body).task

    async def archive_task(self, server_id: str) -> None:
        await self._request("DELETE", f"/tasks/{server_id}")

    async def ai_edit_tasks(self, tasks: list[Task], prompt: str) -> list[EditedTask]:
        payload = {
            "tasks": [task.model_dump(mode="json", by_alias=True) for task in tasks],
            "prompt": prompt,
        }
        body = await self._request("POST", "/ai-edit-tasks", json=payload)
        return AIEditResponse.model_validate(body).edited_tasks

    async def parse_image(self, image: str, instructions: str | None = None) -> list[ParsedTask]:
        payload: dict[str, Any] = {"image": image}
        if instructions:
            payload["instructions"] = instructions
        body = await self._request("POST", "/parse-image", json=payload)
        return ParseImageResponse.model_validate(body).tasks
