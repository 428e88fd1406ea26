"""Task identifiers as an explicit draft/persisted variant."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import uuid4


@dataclass(frozen=True)
class DraftId:
    """Local-only task that the backend has never acknowledged."""

    local_id: str

    def __str__(self) -> str:
        return self.local_id


@dataclass(frozen=True)
class PersistedId:
    """Task known to the backend under a server-assigned id."""

    server_id: str

    def __str__(self) -> str:
        return self.server_id


TaskId = DraftId | PersistedId


def new_draft_id() -> DraftId:
    return DraftId(local_id=f"draft-{uuid4().hex}")


def is_draft(task_id: TaskId) -> bool:
    return isinstance(task_id, DraftId)
