# ruff: noqa: INP001
from __future__ import annotations

from datetime import UTC, date, datetime

from planner.core.time import days_until_due, due_midnight

NOON = datetime(2026, 3, 10, 12, 0, tzinfo=UTC)


def test_due_date_is_anchored_at_utc_midnight() -> None:
    assert due_midnight(date(2026, 3, 10)) == datetime(2026, 3, 10, tzinfo=UTC)


def test_days_until_due_rounds_up() -> None:
    assert days_until_due(date(2026, 3, 12), now=NOON) == 2
    assert days_until_due(date(2026, 3, 11), now=NOON) == 1


def test_days_until_due_today_and_overdue() -> None:
    assert days_until_due(date(2026, 3, 10), now=NOON) == 0
    assert days_until_due(date(2026, 3, 9), now=NOON) == -1
    assert days_until_due(date(2026, 3, 1), now=NOON) == -9


def test_days_until_due_at_exact_midnight() -> None:
    midnight = datetime(2026, 3, 10, tzinfo=UTC)
    assert days_until_due(date(2026, 3, 10), now=midnight) == 0
    assert days_until_due(date(2026, 3, 11), now=midnight) == 1


def test_days_until_due_treats_naive_now_as_utc() -> None:
    assert days_until_due(date(2026, 3, 12), now=NOON.replace(tzinfo=None)) == 2


def test_missing_due_date_yields_none() -> None:
    assert days_until_due(None, now=NOON) is None
