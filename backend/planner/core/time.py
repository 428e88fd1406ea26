"""Time helpers shared by the API mapping layer and the client store."""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, time

SECONDS_PER_DAY = 24 * 60 * 60


def utcnow() -> datetime:
    """Return the current aware UTC timestamp."""
    return datetime.now(UTC)


def today_utc() -> date:
    return utcnow().date()


def due_midnight(due_date: date) -> datetime:
    """Due dates carry no time component; they are anchored at midnight UTC."""
    return datetime.combine(due_date, time.min, tzinfo=UTC)


def days_until_due(due_date: date | None, *, now: datetime | None = None) -> int | None:
    """Whole days until `due_date`, rounded up; negative once overdue."""
    if due_date is None:
        return None
    current = now or utcnow()
    if current.tzinfo is None:
        current = current.replace(tzinfo=UTC)
    delta = due_midnight(due_date) - current
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)
