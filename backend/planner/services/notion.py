"""Notion-backed task repository."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
from notion_client import APIResponseError, AsyncClient
from notion_client.errors import HTTPResponseError, RequestTimeoutError

from planner.core.config import Settings, settings
from planner.core.logging import get_logger
from planner.services.notion_mapping import (
    USER_EMAIL_PROPERTY,
    owner_properties,
    page_to_task,
    task_to_properties,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from planner.schemas.tasks import Task

logger = get_logger(__name__)
NOTION_TOKEN_PREFIX = "ntn_"
LIST_STRATEGY_ERRORS = (
    HTTPResponseError,
    RequestTimeoutError,
    httpx.HTTPError,
    AttributeError,
    TypeError,
)


class NotionNotConfiguredError(RuntimeError):
    """Raised when write operations run without Notion credentials."""

    def __init__(self, message: str = "Notion not configured") -> None:
        super().__init__(message)


class NotionConfigError(ValueError):
    """Raised when the configured Notion credentials are structurally invalid."""


@dataclass(frozen=True)
class NotionTarget:
    client: AsyncClient
    database_id: str
    api_key: str


def build_target(config: Settings) -> NotionTarget | None:
    """Return a client for the configured database, or None when unconfigured."""
    if not config.notion_configured:
        return None
    key = config.notion_api_key
    if any(char.isspace() for char in key):
        msg = (
            "NOTION_API_KEY appears invalid (contains whitespace). "
            f'Ensure it is the exact integration token starting with "{NOTION_TOKEN_PREFIX}".'
        )
        raise NotionConfigError(msg)
    if not key.startswith(NOTION_TOKEN_PREFIX):
        logger.warning("notion.config.unexpected_key_prefix")
    return NotionTarget(
        client=AsyncClient(auth=key, notion_version=config.notion_version),
        database_id=config.notion_database_id,
        api_key=key,
    )


def _email_filter(user_email: str | None) -> dict[str, Any] | None:
    if not user_email:
        return None
    return {"property": USER_EMAIL_PROPERTY, "email": {"equals": user_email}}


async def _paginate(
    fetch: Callable[[str | None], Awaitable[dict[str, Any]]],
) -> AsyncIterator[dict[str, Any]]:
    cursor: str | None = None
    while True:
        response = await fetch(cursor)
        for page in response.get("results") or []:
            yield page
        if response.get("has_more") is not True:
            return
        cursor = response.get("next_cursor") or None
        if cursor is None:
            return


class NotionTaskRepository:
    """Create/read/update/archive tasks stored as pages of one Notion database."""

    def __init__(
        self,
        config: Settings | None = None,
        *,
        target: NotionTarget | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or settings
        self._target = target
        self._http_client = http_client

    @property
    def is_configured(self) -> bool:
        return self._target is not None or self._config.notion_configured

    def _resolve_target(self) -> NotionTarget | None:
        if self._target is None:
            self._target = build_target(self._config)
        return self._target

    def _require_target(self) -> NotionTarget:
        target = self._resolve_target()
        if target is None:
            raise NotionNotConfiguredError
        return target

    async def list_tasks(self, user_email: str | None = None) -> list[Task]:
        """Return every task owned by `user_email`; empty when Notion is unconfigured."""
        target = self._resolve_target()
        if target is None:
            logger.warning("notion.list.not_configured")
            return []

        strategies = (
            ("sdk_query", self._pages_via_sdk_query),
            ("rest_query", self._pages_via_rest_query),
            ("search", self._pages_via_search),
        )
        for name, strategy in strategies:
            try:
                pages = [page async for page in strategy(target, user_email)]
            except LIST_STRATEGY_ERRORS as exc:
                logger.warning(
                    "notion.list.strategy_failed",
                    extra={"strategy": name, "error": str(exc)[:300]},
                )
                continue
            logger.info("notion.list.success", extra={"strategy": name, "count": len(pages)})
            return [page_to_task(page) for page in pages]

        logger.error("notion.list.all_strategies_failed")
        return []

    def _pages_via_sdk_query(
        self,
        target: NotionTarget,
        user_email: str | None,
    ) -> AsyncIterator[dict[str, Any]]:
        query_filter = _email_filter(user_email)

        async def fetch(cursor: str | None) -> dict[str, Any]:
            body: dict[str, Any] = {
                "database_id": target.database_id,
                "page_size": self._config.notion_page_size,
                "sorts": [{"timestamp": "last_edited_time", "direction": "descending"}],
            }
            if cursor:
                body["start_cursor"] = cursor
            if query_filter:
                body["filter"] = query_filter
            return await target.client.databases.query(**body)

        return _paginate(fetch)

    def _pages_via_rest_query(
        self,
        target: NotionTarget,
        user_email: str | None,
    ) -> AsyncIterator[dict[str, Any]]:
        query_filter = _email_filter(user_email)
        url = f"{self._config.notion_api_url.rstrip('/')}/databases/{target.database_id}/query"
        headers = {
            "Authorization": f"Bearer {target.api_key}",
            "Notion-Version": self._config.notion_version,
            "Content-Type": "application/json",
        }

        async def fetch(cursor: str | None) -> dict[str, Any]:
            body: dict[str, Any] = {"page_size": self._config.notion_page_size}
            if cursor:
                body["start_cursor"] = cursor
            if query_filter:
                body["filter"] = query_filter
            if self._http_client is not None:
                response = await self._http_client.post(url, json=body, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=30.0) as client:
                    response = await client.post(url, json=body, headers=headers)
            response.raise_for_status()
            return response.json()

        return _paginate(fetch)

    def _pages_via_search(
        self,
        target: NotionTarget,
        user_email: str | None,
    ) -> AsyncIterator[dict[str, Any]]:
        # Search cannot filter on properties; parent database and owner are checked per page.
        async def fetch(cursor: str | None) -> dict[str, Any]:
            body: dict[str, Any] = {
                "filter": {"property": "object", "value": "page"},
                "sort": {"direction": "descending", "timestamp": "last_edited_time"},
                "page_size": self._config.notion_page_size,
            }
            if cursor:
                body["start_cursor"] = cursor
            response = await target.client.search(**body)
            response = dict(response)
            response["results"] = [
                page
                for page in response.get("results") or []
                if (page.get("parent") or {}).get("type") == "database_id"
                and _same_id((page.get("parent") or {}).get("database_id"), target.database_id)
                and _owned_by(page, user_email)
            ]
            return response

        return _paginate(fetch)

    async def create_task(
        self,
        fields: dict[str, Any],
        *,
        user_email: str | None = None,
        user_id: str | None = None,
    ) -> Task:
        target = self._require_target()
        properties = task_to_properties(fields)
        properties.update(owner_properties(user_email=user_email, user_id=user_id))
        try:
            page = await target.client.pages.create(
                parent={"database_id": target.database_id},
                properties=properties,
            )
        except APIResponseError as exc:
            logger.error("notion.create.failed", extra={"code": str(exc.code)})
            raise
        return page_to_task(page)

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> Task:
        target = self._require_target()
        try:
            page = await target.client.pages.update(
                page_id=task_id,
                properties=task_to_properties(fields),
            )
        except APIResponseError as exc:
            logger.error(
                "notion.update.failed",
                extra={"task_id": task_id, "code": str(exc.code)},
            )
            raise
        return page_to_task(page)

    async def archive_task(self, task_id: str) -> None:
        target = self._require_target()
        try:
            await target.client.pages.update(page_id=task_id, archived=True)
        except APIResponseError as exc:
            logger.error(
                "notion.archive.failed",
                extra={"task_id": task_id, "code": str(exc.code)},
            )
            raise


def _same_id(left: object, right: str) -> bool:
    if not isinstance(left, str):
        return False
    return left.replace("-", "") == right.replace("-", "")


def _owned_by(page: dict[str, Any], user_email: str | None) -> bool:
    if not user_email:
        return True
    prop = (page.get("properties") or {}).get(USER_EMAIL_PROPERTY)
    return isinstance(prop, dict) and prop.get("email") == user_email
