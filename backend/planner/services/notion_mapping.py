"""Mapping between Notion page property bags and planner tasks.

Databases in the wild rename columns, so each task field resolves through an
ordered fallback chain: the known property names first, then the first
property of the expected Notion type in page order. The chain is fixed and
deterministic so a given page always maps the same way.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from planner.core.time import days_until_due, utcnow
from planner.schemas.tasks import Task, TaskStatus, TodoItem, Weekday

TITLE_PROPERTY = "Name"
STATUS_PROPERTY = "Status"
DUE_DATE_PROPERTY = "Due Date"
WEEKDAY_PROPERTY = "Weekdays"
TODOS_PROPERTY = "Todos"
USER_EMAIL_PROPERTY = "User Email"
USER_ID_PROPERTY = "User ID"

TODO_DONE_MARKER = "✓"
TODO_OPEN_MARKER = "-"
_TODO_PREFIX = re.compile(r"^[\-\*✓]\s*")
UNTITLED = "Untitled"


@dataclass(frozen=True)
class PropertyRule:
    """Where to look for one task field inside a page's properties."""

    names: tuple[str, ...]
    fallback_type: str | None


TITLE_RULE = PropertyRule(names=(), fallback_type="title")
STATUS_RULE = PropertyRule(names=(STATUS_PROPERTY,), fallback_type="select")
DUE_DATE_RULE = PropertyRule(names=(DUE_DATE_PROPERTY, "Due"), fallback_type="date")
WEEKDAY_RULE = PropertyRule(names=(WEEKDAY_PROPERTY, "Weekday"), fallback_type=None)
TODOS_RULE = PropertyRule(names=(TODOS_PROPERTY, "To-dos"), fallback_type="rich_text")


def first_property_of_type(properties: dict[str, Any], prop_type: str) -> dict[str, Any] | None:
    for value in properties.values():
        if isinstance(value, dict) and value.get("type") == prop_type:
            return value
    return None


def resolve_property(properties: dict[str, Any], rule: PropertyRule) -> dict[str, Any] | None:
    for name in rule.names:
        value = properties.get(name)
        if isinstance(value, dict):
            return value
    if rule.fallback_type is None:
        return None
    return first_property_of_type(properties, rule.fallback_type)


def _plain_text(prop: dict[str, Any] | None, key: str) -> str:
    if not prop:
        return ""
    blocks = prop.get(key) or []
    if not blocks or not isinstance(blocks[0], dict):
        return ""
    first = blocks[0]
    text = first.get("plain_text")
    if text is None:
        text = (first.get("text") or {}).get("content")
    return text or ""


def _select_name(prop: dict[str, Any] | None) -> str | None:
    if not prop:
        return None
    select = prop.get("select")
    if not isinstance(select, dict):
        return None
    return select.get("name")


def _date_start(prop: dict[str, Any] | None) -> date | None:
    if not prop:
        return None
    value = prop.get("date")
    if not isinstance(value, dict):
        return None
    start = value.get("start")
    if not isinstance(start, str) or not start:
        return None
    # Date properties may carry a time component; tasks keep the calendar day.
    try:
        return date.fromisoformat(start[:10])
    except ValueError:
        return None


def parse_todos(text: str, *, page_id: str) -> list[TodoItem]:
    lines = [line for line in text.split("\n") if line]
    return [
        TodoItem(
            id=f"{page_id}-todo-{index}",
            text=_TODO_PREFIX.sub("", line),
            completed=line.strip().startswith(TODO_DONE_MARKER),
        )
        for index, line in enumerate(lines)
    ]


def format_todos(items: list[TodoItem]) -> str:
    return "\n".join(
        f"{TODO_DONE_MARKER if item.completed else TODO_OPEN_MARKER} {item.text}" for item in items
    )


def _enum_or_default(enum_cls: type, value: str | None, default: Any) -> Any:
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


def page_to_task(page: dict[str, Any], *, now: datetime | None = None) -> Task:
    """Convert a Notion page object into a `Task`."""
    props = page.get("properties") or {}
    page_id = str(page.get("id", ""))

    title = _plain_text(resolve_property(props, TITLE_RULE), "title") or UNTITLED
    due_date = _date_start(resolve_property(props, DUE_DATE_RULE))
    status = _enum_or_default(
        TaskStatus,
        _select_name(resolve_property(props, STATUS_RULE)),
        TaskStatus.TODO,
    )
    weekday = _enum_or_default(
        Weekday,
        _select_name(resolve_property(props, WEEKDAY_RULE)),
        Weekday.NONE,
    )
    todos_text = _plain_text(resolve_property(props, TODOS_RULE), "rich_text")

    created = page.get("created_time")
    return Task(
        id=page_id,
        title=title,
        due_date=due_date,
        date_created=created if created else utcnow(),
        status=status,
        weekday=weekday,
        days_until_due=days_until_due(due_date, now=now),
        todo_items=parse_todos(todos_text, page_id=page_id) if todos_text else [],
    )


def task_to_properties(fields: dict[str, Any]) -> dict[str, Any]:
    """Build a Notion property payload from the task fields present in `fields`.

    Keys are `Task` attribute names; absent keys are left untouched in Notion.
    """
    properties: dict[str, Any] = {}

    if "title" in fields and fields["title"] is not None:
        properties[TITLE_PROPERTY] = {"title": [{"text": {"content": fields["title"]}}]}

    if "due_date" in fields:
        due = fields["due_date"]
        properties[DUE_DATE_PROPERTY] = {
            "date": {"start": due.isoformat() if isinstance(due, date) else str(due)}
            if due
            else None,
        }

    if "status" in fields and fields["status"] is not None:
        properties[STATUS_PROPERTY] = {"select": {"name": TaskStatus(fields["status"]).value}}

    if "weekday" in fields:
        weekday = fields["weekday"]
        properties[WEEKDAY_PROPERTY] = {
            "select": {"name": Weekday(weekday).value} if weekday else None,
        }

    if "todo_items" in fields and fields["todo_items"] is not None:
        items = [
            item if isinstance(item, TodoItem) else TodoItem.model_validate(item)
            for item in fields["todo_items"]
        ]
        properties[TODOS_PROPERTY] = {
            "rich_text": [{"text": {"content": format_todos(items)}}],
        }

    return properties


def owner_properties(*, user_email: str | None, user_id: str | None) -> dict[str, Any]:
    properties: dict[str, Any] = {}
    if user_email:
        properties[USER_EMAIL_PROPERTY] = {"email": user_email}
    if user_id:
        properties[USER_ID_PROPERTY] = {"rich_text": [{"text": {"content": user_id}}]}
    return properties
