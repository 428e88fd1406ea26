"""Public schema exports shared by API routes and the client store."""

from planner.schemas.tasks import (
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
    TodoItem,
    ViewType,
    Weekday,
)

__all__ = [
    "Task",
    "TaskCreate",
    "TaskStatus",
    "TaskUpdate",
    "TodoItem",
    "ViewType",
    "Weekday",
]
