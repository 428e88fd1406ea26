"""Task CRUD endpoints proxied to the Notion database."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, status
from notion_client import APIResponseError

from planner.api.deps import REPOSITORY_DEP, USER_DEP
from planner.core.auth import AuthContext
from planner.core.logging import get_logger
from planner.core.time import today_utc
from planner.schemas.common import SuccessResponse
from planner.schemas.tasks import (
    DEFAULT_TASK_TITLE,
    TaskCreate,
    TaskListResponse,
    TaskResponse,
    TaskStatus,
    TaskUpdate,
    Weekday,
)
from planner.services.notion import (
    NotionConfigError,
    NotionNotConfiguredError,
    NotionTaskRepository,
)

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = get_logger(__name__)

NOT_CONFIGURED_MESSAGE = (
    "Notion not configured on server. Ensure NOTION_API_KEY and NOTION_DATABASE_ID are set "
    "and restart."
)
DEBUG_SAMPLE_SIZE = 5


def _vendor_error(action: str, exc: Exception) -> HTTPException:
    detail: Any = str(exc) or f"Failed to {action} task"
    if isinstance(exc, APIResponseError):
        detail = {"message": str(exc), "code": str(exc.code)}
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    debug: str | None = Query(default=None),
    auth: AuthContext = USER_DEP,
    repository: NotionTaskRepository = REPOSITORY_DEP,
) -> TaskListResponse:
    """List the caller's tasks; an unconfigured backend yields an empty list."""
    try:
        tasks = await repository.list_tasks(auth.email)
    except NotionConfigError as exc:
        raise _vendor_error("fetch", exc) from exc
    if debug != "1":
        return TaskListResponse(tasks=tasks)
    sample = [
        {
            "id": task.id,
            "title": task.title,
            "dueDate": task.due_date.isoformat() if task.due_date else None,
            "status": task.status.value,
            "weekday": task.weekday.value,
        }
        for task in tasks[:DEBUG_SAMPLE_SIZE]
    ]
    return TaskListResponse(
        tasks=tasks,
        debug={"count": len(tasks), "sample": sample, "userEmail": auth.email},
    )


@router.post("", response_model=TaskResponse)
async def create_task(
    payload: TaskCreate,
    auth: AuthContext = USER_DEP,
    repository: NotionTaskRepository = REPOSITORY_DEP,
) -> TaskResponse:
    """Create a task owned by the caller, filling server-side defaults."""
    if not repository.is_configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=NOT_CONFIGURED_MESSAGE,
        )
    fields = {
        "title": (payload.title or "").strip() or DEFAULT_TASK_TITLE,
        "due_date": payload.due_date or today_utc(),
        "status": payload.status or TaskStatus.TODO,
        "weekday": payload.weekday or Weekday.NONE,
        "todo_items": payload.todo_items,
    }
    try:
        task = await repository.create_task(fields, user_email=auth.email, user_id=auth.uid)
    except NotionNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=NOT_CONFIGURED_MESSAGE,
        ) from exc
    except (APIResponseError, NotionConfigError) as exc:
        raise _vendor_error("create", exc) from exc
    logger.info("tasks.create.success", extra={"task_id": task.id, "uid": auth.uid})
    return TaskResponse(task=task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    auth: AuthContext = USER_DEP,
    repository: NotionTaskRepository = REPOSITORY_DEP,
) -> TaskResponse:
    """Persist the fields present in the body; full and partial bodies are equivalent."""
    fields = payload.changed_fields()
    try:
        task = await repository.update_task(task_id, fields)
    except NotionNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except (APIResponseError, NotionConfigError) as exc:
        raise _vendor_error("update", exc) from exc
    logger.info(
        "tasks.update.success",
        extra={"task_id": task_id, "fields": sorted(fields), "uid": auth.uid},
    )
    return TaskResponse(task=task)


@router.delete("/{task_id}", response_model=SuccessResponse)
async def delete_task(
    task_id: str,
    auth: AuthContext = USER_DEP,
    repository: NotionTaskRepository = REPOSITORY_DEP,
) -> SuccessResponse:
    """Archive (soft-delete) a task."""
    try:
        await repository.archive_task(task_id)
    except NotionNotConfiguredError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    except (APIResponseError, NotionConfigError) as exc:
        raise _vendor_error("delete", exc) from exc
    logger.info("tasks.archive.success", extra={"task_id": task_id, "uid": auth.uid})
    return SuccessResponse()
