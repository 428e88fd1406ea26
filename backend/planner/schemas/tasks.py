"""Task schemas for the planner API and the client task store."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import Field, field_validator

from planner.schemas.common import CamelModel

DEFAULT_TASK_TITLE = "New Task"


class TaskStatus(str, Enum):
    """Workflow stage; declaration order is board column order."""

    REMINDERS = "Reminders"
    LONG_TERM_DEADLINES = "Long Term Deadlines"
    TODO = "To Do"
    DOING_TODAY = "Doing Today"
    DOING_TOMORROW = "Doing Tomorrow"
    ARCHIVED = "Archived"


class Weekday(str, Enum):
    """Secondary classification axis, independent of status."""

    NONE = "No Weekdays"
    SUNDAY = "Sunday"
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"


class ViewType(str, Enum):
    BOARD = "board"
    WEEKDAYS = "weekdays"
    CALENDAR = "calendar"


def _coerce_enum(enum_cls: type[Enum], value: object) -> Enum | None:
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        return None


class TodoItem(CamelModel):
    """One checklist entry inside a task."""

    id: str
    text: str
    completed: bool = False


class Task(CamelModel):
    """Canonical task representation exchanged between API and store."""

    id: str = Field(description="Server page id, or a local draft id before creation.")
    title: str = Field(examples=["Finish lab report"])
    due_date: date | None = Field(default=None, examples=["2026-10-21"])
    date_created: datetime
    status: TaskStatus = TaskStatus.TODO
    weekday: Weekday = Weekday.NONE
    days_until_due: int | None = Field(
        default=None,
        description="Derived from `dueDate`; never set directly.",
    )
    todo_items: list[TodoItem] = Field(default_factory=list)
    comments: list[str] = Field(default_factory=list)

    @field_validator("weekday", mode="before")
    @classmethod
    def _weekday_default(cls, value: object) -> object:
        # Older records have no weekday at all.
        return Weekday.NONE if value is None else value

    @field_validator("todo_items", "comments", mode="before")
    @classmethod
    def _null_list(cls, value: object) -> object:
        return [] if value is None else value


class TaskCreate(CamelModel):
    """Create payload; omitted fields take server-side defaults."""

    title: str | None = None
    due_date: date | None = None
    status: TaskStatus | None = None
    weekday: Weekday | None = None
    todo_items: list[TodoItem] = Field(default_factory=list)

    @field_validator("todo_items", mode="before")
    @classmethod
    def _null_list(cls, value: object) -> object:
        return [] if value is None else value


class TaskUpdate(CamelModel):
    """Full or partial update; only fields present in the body are persisted.

    Fields with no persisted counterpart (`id`, `dateCreated`, `daysUntilDue`,
    `comments`) are accepted and ignored so full-task bodies validate.
    """

    title: str | None = None
    due_date: date | None = None
    status: TaskStatus | None = None
    weekday: Weekday | None = None
    todo_items: list[TodoItem] | None = None

    def changed_fields(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.model_fields_set}


class TaskListResponse(CamelModel):
    tasks: list[Task]
    success: bool = True
    debug: dict[str, Any] | None = None


class TaskResponse(CamelModel):
    task: Task
    success: bool = True


class AIEditTaskInput(CamelModel):
    """Task snapshot sent to the batch-edit assistant."""

    id: str
    title: str
    due_date: date | None = None
    status: str | None = None
    comments: list[str] = Field(default_factory=list)

    @field_validator("comments", mode="before")
    @classmethod
    def _null_list(cls, value: object) -> object:
        return [] if value is None else value


class AIEditRequest(CamelModel):
    tasks: list[AIEditTaskInput] = Field(default_factory=list)
    prompt: str = ""


class EditedTask(CamelModel):
    """Assistant output for one task; unknown statuses are dropped."""

    id: str
    title: str
    due_date: date | None = None
    status: TaskStatus | None = None
    comments: list[str] = Field(default_factory=list)

    @field_validator("status", mode="before")
    @classmethod
    def _lenient_status(cls, value: object) -> object:
        return _coerce_enum(TaskStatus, value)

    @field_validator("comments", mode="before")
    @classmethod
    def _null_list(cls, value: object) -> object:
        return [] if value is None else value


class AIEditResponse(CamelModel):
    edited_tasks: list[EditedTask]


class ParsedTask(CamelModel):
    """Task candidate extracted from an image."""

    title: str
    due_date: date | None = None
    status: TaskStatus | None = None
    priority: str | None = None
    notes: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _lenient_status(cls, value: object) -> object:
        return _coerce_enum(TaskStatus, value)

    @field_validator("priority", mode="before")
    @classmethod
    def _lenient_priority(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in {"high", "medium", "low"}:
            return value.strip().lower()
        return None


class ParseImageRequest(CamelModel):
    image: str | None = None
    instructions: str | None = None


class ParseImageResponse(CamelModel):
    tasks: list[ParsedTask]
    raw: str
    success: bool = True
