"""Queue that walks AI-extracted task candidates through the create modal one at a time."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING

from planner.core.time import days_until_due
from planner.schemas.tasks import DEFAULT_TASK_TITLE, Task, TaskStatus, Weekday
from planner.store.ids import DraftId, new_draft_id

if TYPE_CHECKING:
    from collections.abc import Iterable

    from planner.schemas.tasks import ParsedTask
    from planner.store.store import PlannerStore


class TaskIntakeQueue:
    """Feeds parsed candidates into the store as drafts, one modal at a time.

    The queue belongs to the caller. The store only sees ordinary drafts that
    are confirmed with `submit_task` or abandoned with `discard_draft`.
    """

    def __init__(self, store: PlannerStore) -> None:
        self._store = store
        self._pending: deque[ParsedTask] = deque()
        self._current: DraftId | None = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def current(self) -> DraftId | None:
        return self._current

    def enqueue(self, candidates: Iterable[ParsedTask]) -> DraftId | None:
        """Replace the queue with `candidates` and open the first one."""
        self._pending = deque(candidates)
        self._current = None
        return self.open_next()

    def open_next(self) -> DraftId | None:
        if not self._pending:
            self._current = None
            return None
        candidate = self._pending.popleft()
        draft_id = new_draft_id()
        now = self._store.now()
        task = Task(
            id=draft_id.local_id,
            title=candidate.title.strip() or DEFAULT_TASK_TITLE,
            due_date=candidate.due_date,
            date_created=now,
            status=candidate.status or TaskStatus.TODO,
            weekday=Weekday.NONE,
            days_until_due=days_until_due(candidate.due_date, now=now),
            comments=[candidate.notes] if candidate.notes else [],
        )
        self._store.add_task(task, task_id=draft_id)
        self._store.set_selected_task(draft_id)
        self._store.set_is_modal_open(True)
        self._current = draft_id
        return draft_id

    def on_modal_closed(self) -> DraftId | None:
        """Advance after the modal closes; a discarded draft clears the queue."""
        if self._store.is_modal_open:
            return self._current
        if self._current is not None and self._store.resolve_id(self._current) is None:
            self.skip()
            return None
        return self.open_next()

    def skip(self) -> None:
        self._pending.clear()
        self._current = None
