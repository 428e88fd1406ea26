"""Client-side task store with optimistic updates and server reconciliation.

Every mutation is applied to local state synchronously. Persistence calls run
afterwards and, when they succeed, replace the local task with the
authoritative server copy. Each outbound call for a task takes a revision
number; a response is applied only if no newer call for the same task has
already been applied, so a slow early response never overwrites a later one.
"""

from __future__ import annotations

import asyncio
from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import ValidationError

from planner.core.logging import get_logger
from planner.core.time import days_until_due, utcnow
from planner.schemas.tasks import (
    DEFAULT_TASK_TITLE,
    Task,
    TaskStatus,
    TaskUpdate,
    TodoItem,
    ViewType,
    Weekday,
)
from planner.store.client import AuthTokenNotConfiguredError, TaskServiceError
from planner.store.ids import DraftId, PersistedId, TaskId, new_draft_id

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from planner.store.client import TaskServiceClient

logger = get_logger(__name__)

# Fields owned by the server or derived locally; callers never set them.
PROTECTED_FIELDS = frozenset({"id", "date_created", "days_until_due"})
PERSISTENCE_ERRORS = (TaskServiceError, ValidationError)


class PlannerStore:
    """Single-writer container for tasks plus board view and modal state."""

    def __init__(
        self,
        client: TaskServiceClient,
        *,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._client = client
        self._clock = clock
        self._sleep = sleep
        self._tasks: dict[TaskId, Task] = {}
        self._selected_id: TaskId | None = None
        self._selected_snapshot: Task | None = None
        self._revision = 0
        self._applied: dict[TaskId, int] = {}
        self._promoted: dict[DraftId, PersistedId] = {}
        self._listeners: list[Callable[[PlannerStore], None]] = []
        self.current_view = ViewType.BOARD
        self.is_modal_open = False

    # -- reads -------------------------------------------------------------

    @property
    def tasks(self) -> list[Task]:
        return list(self._tasks.values())

    @property
    def task_ids(self) -> list[TaskId]:
        return list(self._tasks)

    def get(self, task_id: TaskId) -> Task | None:
        return self._tasks.get(task_id)

    def resolve_id(self, task_id: TaskId) -> TaskId | None:
        """Current id for `task_id`, following a draft to its server id after creation."""
        if task_id in self._tasks:
            return task_id
        if isinstance(task_id, DraftId):
            promoted = self._promoted.get(task_id)
            if promoted is not None and promoted in self._tasks:
                return promoted
        return None

    def now(self) -> datetime:
        return self._clock()

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    @property
    def selected_id(self) -> TaskId | None:
        return self._selected_id

    @property
    def selected_task(self) -> Task | None:
        """Live selected task; the last known copy if it was just removed."""
        if self._selected_id is None:
            return None
        return self._tasks.get(self._selected_id, self._selected_snapshot)

    def tasks_by_status(self, status: TaskStatus) -> list[Task]:
        """Board column: earliest due date first, undated tasks last."""
        column = [task for task in self._tasks.values() if task.status == status]
        return sorted(column, key=lambda task: (task.due_date is None, task.due_date or date.min))

    def tasks_by_weekday(self, weekday: Weekday) -> list[Task]:
        return [task for task in self._tasks.values() if task.weekday == weekday]

    def tasks_due_on(self, day: date) -> list[Task]:
        return [task for task in self._tasks.values() if task.due_date == day]

    def subscribe(self, listener: Callable[[PlannerStore], None]) -> Callable[[], None]:
        """Call `listener` after every state change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # -- view state --------------------------------------------------------

    def set_current_view(self, view: ViewType) -> None:
        self.current_view = ViewType(view)
        self._notify()

    def set_selected_task(self, task_id: TaskId | None) -> None:
        self._selected_id = task_id
        self._selected_snapshot = self._tasks.get(task_id) if task_id is not None else None
        self._notify()

    def set_is_modal_open(self, is_open: bool) -> None:
        self.is_modal_open = is_open
        self._notify()

    # -- local mutations ---------------------------------------------------

    def set_tasks(self, tasks: list[Task]) -> None:
        """Replace the whole collection with server tasks."""
        self._tasks = {PersistedId(task.id): task for task in tasks}
        self._applied.clear()
        self._notify()

    def add_task(self, task: Task, *, task_id: TaskId | None = None) -> TaskId:
        """Insert `task` locally; never contacts the server.

        Without an explicit `task_id` the task is a draft keyed by its own id.
        """
        key = task_id if task_id is not None else DraftId(task.id)
        self._tasks[key] = task
        self._notify()
        return key

    def update_task(self, task_id: TaskId, **fields: Any) -> None:
        """Merge `fields` into the task; recompute `days_until_due` when the due date moves."""
        task = self._tasks.get(task_id)
        if task is None:
            logger.debug("store.update.unknown_task", extra={"task_id": str(task_id)})
            return
        updates = self._clean_fields(fields)
        if not updates:
            return
        merged = Task.model_validate({**task.model_dump(), **updates})
        if "due_date" in updates:
            merged = merged.model_copy(
                update={"days_until_due": days_until_due(merged.due_date, now=self._clock())},
            )
        self._tasks[task_id] = merged
        self._notify()

    def _clean_fields(self, fields: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for name, value in fields.items():
            if name in PROTECTED_FIELDS or name not in Task.model_fields:
                logger.warning("store.update.field_ignored", extra={"field": name})
                continue
            blank_title = name == "title" and isinstance(value, str) and not value.strip()
            cleaned[name] = DEFAULT_TASK_TITLE if blank_title else value
        return cleaned

    def new_draft(self, **fields: Any) -> DraftId:
        """Add a "New Task" draft, select it and open the modal."""
        draft_id = new_draft_id()
        now = self._clock()
        values: dict[str, Any] = {
            "title": DEFAULT_TASK_TITLE,
            "due_date": now.date(),
            "status": TaskStatus.TODO,
            "weekday": Weekday.NONE,
            "todo_items": [],
        }
        values.update(self._clean_fields(fields))
        task = Task.model_validate({**values, "id": draft_id.local_id, "date_created": now})
        task = task.model_copy(
            update={"days_until_due": days_until_due(task.due_date, now=now)},
        )
        self.add_task(task, task_id=draft_id)
        self.set_selected_task(draft_id)
        self.set_is_modal_open(True)
        return draft_id

    def discard_draft(self, task_id: TaskId) -> None:
        """Close the modal and drop a draft the user abandoned."""
        if isinstance(task_id, DraftId):
            self._remove(task_id)
        self.set_is_modal_open(False)

    # -- todo items ----------------------------------------------------------

    def add_todo_item(self, task_id: TaskId, text: str) -> TodoItem | None:
        task = self._tasks.get(task_id)
        if task is None or not text.strip():
            return None
        item = TodoItem(id=f"todo-{uuid4().hex[:12]}", text=text, completed=False)
        self.update_task(task_id, todo_items=[*task.todo_items, item])
        return item

    def toggle_todo_item(self, task_id: TaskId, item_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            return
        items = [
            item.model_copy(update={"completed": not item.completed}) if item.id == item_id else item
            for item in task.todo_items
        ]
        self.update_task(task_id, todo_items=items)

    def edit_todo_item(self, task_id: TaskId, item_id: str, text: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            return
        items = [
            item.model_copy(update={"text": text}) if item.id == item_id else item
            for item in task.todo_items
        ]
        self.update_task(task_id, todo_items=items)

    def remove_todo_item(self, task_id: TaskId, item_id: str) -> None:
        task = self._tasks.get(task_id)
        if task is None:
            return
        self.update_task(
            task_id,
            todo_items=[item for item in task.todo_items if item.id != item_id],
        )

    # -- persistence ---------------------------------------------------------

    async def load_tasks(self) -> None:
        """Fetch the caller's tasks; any failure leaves an empty board."""
        try:
            tasks = await self._client.list_tasks()
        except AuthTokenNotConfiguredError:
            raise
        except PERSISTENCE_ERRORS as exc:
            logger.error("store.load.failed", extra={"error": str(exc)[:300]})
            self.set_tasks([])
            return
        logger.info("store.load.success", extra={"count": len(tasks)})
        self.set_tasks(tasks)

    async def submit_task(self, task_id: TaskId) -> None:
        """Create a draft on the server, or re-persist an existing task in full."""
        task = self._tasks.get(task_id)
        if task is None:
            return
        if isinstance(task_id, DraftId):
            await self._create(task_id, task)
        else:
            await self._update_full(task_id, task)

    async def _create(self, draft_id: DraftId, task: Task) -> None:
        payload = task.model_dump(
            mode="json",
            by_alias=True,
            include={"title", "due_date", "status", "weekday", "todo_items"},
        )
        revision = self._next_revision()
        try:
            created = await self._client.create_task(payload)
        except AuthTokenNotConfiguredError:
            raise
        except PERSISTENCE_ERRORS as exc:
            logger.error(
                "store.submit.create_failed",
                extra={"task_id": str(draft_id), "error": str(exc)[:300]},
            )
            return
        if draft_id not in self._tasks:
            logger.warning(
                "store.submit.draft_removed",
                extra={"task_id": str(draft_id), "server_id": created.id},
            )
            return
        if not self._accept(draft_id, revision):
            return
        new_id = PersistedId(created.id)
        self._promoted[draft_id] = new_id
        self._replace(draft_id, new_id, created)
        self._applied[new_id] = self._applied.pop(draft_id, revision)
        logger.info(
            "store.submit.created",
            extra={"draft_id": str(draft_id), "server_id": created.id},
        )

    async def _update_full(self, task_id: PersistedId, task: Task) -> None:
        payload = task.model_dump(mode="json", by_alias=True, exclude={"id"})
        revision = self._next_revision()
        max_attempts = self._client.config.submit_max_attempts
        backoff = self._client.config.submit_backoff_seconds
        for attempt in range(1, max_attempts + 1):
            try:
                updated = await self._client.update_task(task_id.server_id, payload)
                break
            except AuthTokenNotConfiguredError:
                raise
            except PERSISTENCE_ERRORS as exc:
                logger.warning(
                    "store.submit.attempt_failed",
                    extra={"task_id": str(task_id), "attempt": attempt, "error": str(exc)[:300]},
                )
                if attempt < max_attempts:
                    await self._sleep(backoff * attempt)
        else:
            # The optimistic edit stays visible, unreconciled.
            logger.error(
                "store.submit.failed",
                extra={"task_id": str(task_id), "attempts": max_attempts},
            )
            return
        self._apply_server_task(task_id, revision, updated)

    async def submit_partial(self, task_id: TaskId, **fields: Any) -> None:
        """Persist only `fields` for a persisted task; drafts are ignored."""
        if not isinstance(task_id, PersistedId):
            return
        payload = TaskUpdate.model_validate(self._clean_fields(fields)).model_dump(
            mode="json",
            by_alias=True,
            exclude_unset=True,
        )
        if not payload:
            return
        revision = self._next_revision()
        try:
            updated = await self._client.update_task(task_id.server_id, payload)
        except AuthTokenNotConfiguredError:
            raise
        except PERSISTENCE_ERRORS as exc:
            logger.error(
                "store.submit_partial.failed",
                extra={"task_id": str(task_id), "fields": sorted(payload), "error": str(exc)[:300]},
            )
            return
        self._apply_server_task(task_id, revision, updated)

    async def move_task(self, task_id: TaskId, **fields: Any) -> None:
        """Drag-and-drop move: apply locally, then persist only what changed."""
        task = self._tasks.get(task_id)
        if task is None:
            return
        changed = {
            name: value
            for name, value in self._clean_fields(fields).items()
            if getattr(task, name) != value
        }
        if not changed:
            return
        self.update_task(task_id, **changed)
        await self.submit_partial(task_id, **changed)

    async def delete_task(self, task_id: TaskId) -> None:
        """Remove locally, archive on the server, and restore on failure."""
        removed = self._remove(task_id)
        if removed is None or isinstance(task_id, DraftId):
            return
        index, task = removed
        try:
            await self._client.archive_task(task_id.server_id)
        except AuthTokenNotConfiguredError:
            self._insert_at(index, task_id, task)
            raise
        except PERSISTENCE_ERRORS as exc:
            logger.error(
                "store.delete.failed",
                extra={"task_id": str(task_id), "error": str(exc)[:300]},
            )
            self._insert_at(index, task_id, task)
            return
        logger.info("store.delete.success", extra={"task_id": str(task_id)})

    # -- internals -----------------------------------------------------------

    def _next_revision(self) -> int:
        self._revision += 1
        return self._revision

    def _accept(self, task_id: TaskId, revision: int) -> bool:
        latest = self._applied.get(task_id, 0)
        if revision < latest:
            logger.info(
                "store.reconcile.stale_response_discarded",
                extra={"task_id": str(task_id), "revision": revision, "latest": latest},
            )
            return False
        self._applied[task_id] = revision
        return True

    def _apply_server_task(self, task_id: PersistedId, revision: int, task: Task) -> None:
        if task_id not in self._tasks:
            logger.info("store.reconcile.task_removed", extra={"task_id": str(task_id)})
            return
        if not self._accept(task_id, revision):
            return
        self._tasks[task_id] = task
        self._notify()

    def _replace(self, old_id: TaskId, new_id: TaskId, task: Task) -> None:
        self._tasks = {
            (new_id if key == old_id else key): (task if key == old_id else value)
            for key, value in self._tasks.items()
        }
        if self._selected_id == old_id:
            self._selected_id = new_id
            self._selected_snapshot = task
        self._notify()

    def _remove(self, task_id: TaskId) -> tuple[int, Task] | None:
        if task_id not in self._tasks:
            return None
        index = list(self._tasks).index(task_id)
        task = self._tasks.pop(task_id)
        if self._selected_id == task_id:
            self._selected_snapshot = task
        self._notify()
        return index, task

    def _insert_at(self, index: int, task_id: TaskId, task: Task) -> None:
        items = list(self._tasks.items())
        items.insert(min(index, len(items)), (task_id, task))
        self._tasks = dict(items)
        self._notify()
