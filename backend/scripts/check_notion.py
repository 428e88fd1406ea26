"""CLI script to verify the configured Notion database is reachable and writable."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

BACKEND_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_ROOT))

REQUIRED_PROPERTIES = (
    "Name (Title)",
    "Status (Select)",
    "Due Date (Date)",
    "Weekdays (Select)",
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check NOTION_API_KEY/NOTION_DATABASE_ID by listing and creating a task.",
    )
    parser.add_argument(
        "--user-email",
        type=str,
        default=None,
        help="Only list tasks owned by this email (default: all tasks)",
    )
    parser.add_argument(
        "--create",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Create a throwaway test task after listing (default: true)",
    )
    return parser.parse_args()


async def _run() -> int:
    from notion_client import APIResponseError

    from planner.core.config import settings
    from planner.core.time import today_utc, utcnow
    from planner.schemas.tasks import TaskStatus, Weekday
    from planner.services.notion import NotionConfigError, NotionTaskRepository

    args = _parse_args()

    if not settings.notion_configured:
        sys.stdout.write("notion_configured=false\n")
        sys.stdout.write(f"api_key_set={bool(settings.notion_api_key)} ")
        sys.stdout.write(f"database_id={settings.notion_database_id or 'n/a'}\n")
        return 1
    sys.stdout.write(f"database_id={settings.notion_database_id}\n")

    repository = NotionTaskRepository(settings)
    try:
        tasks = await repository.list_tasks(args.user_email)
    except NotionConfigError as exc:
        sys.stdout.write(f"config_error={exc}\n")
        return 1
    sys.stdout.write(f"tasks_listed={len(tasks)}\n")
    if tasks:
        sys.stdout.write(f"sample_id={tasks[0].id} sample_title={tasks[0].title}\n")

    if not args.create:
        return 0

    title = f"Test Task ({utcnow().strftime('%H:%M:%S')})"
    try:
        created = await repository.create_task(
            {
                "title": title,
                "due_date": today_utc(),
                "status": TaskStatus.TODO,
                "weekday": Weekday.NONE,
                "todo_items": [],
            },
            user_email=args.user_email,
        )
    except APIResponseError as exc:
        sys.stdout.write(f"create_failed code={exc.code} message={exc}\n")
        if str(exc.code) == "validation_error":
            sys.stdout.write("required properties:\n")
            for prop in REQUIRED_PROPERTIES:
                sys.stdout.write(f"- {prop}\n")
        return 1

    sys.stdout.write(f"created_id={created.id} created_title={created.title}\n")
    return 0


def main() -> None:
    """Run the async CLI workflow and exit with its return code."""
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
