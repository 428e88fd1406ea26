"""Client-side task store and its HTTP client."""

from planner.store.client import (
    AuthTokenError,
    AuthTokenNotConfiguredError,
    TaskServiceClient,
    TaskServiceError,
)
from planner.store.config import StoreSettings
from planner.store.ids import DraftId, PersistedId, TaskId, is_draft, new_draft_id
from planner.store.intake import TaskIntakeQueue
from planner.store.store import PlannerStore

__all__ = [
    "AuthTokenError",
    "AuthTokenNotConfiguredError",
    "DraftId",
    "PersistedId",
    "PlannerStore",
    "StoreSettings",
    "TaskId",
    "TaskIntakeQueue",
    "TaskServiceClient",
    "TaskServiceError",
    "is_draft",
    "new_draft_id",
]
