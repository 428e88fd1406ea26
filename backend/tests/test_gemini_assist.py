# ruff: noqa: INP001
"""Prompt building and reply parsing for the Gemini assistants."""

from __future__ import annotations

import base64
from datetime import date
from types import SimpleNamespace
from typing import Any

import pytest

from planner.schemas.tasks import AIEditTaskInput, TaskStatus
from planner.services.gemini import (
    GeminiAssistant,
    GeminiNotConfiguredError,
    InvalidImageError,
    MalformedAIResponseError,
    build_edit_prompt,
    build_extraction_prompt,
    decode_image_data_url,
    parse_edit_response,
    parse_extraction_response,
)

PNG_URL = "data:image/png;base64," + base64.b64encode(b"\x89PNG fake").decode()


class _FakeModels:
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> SimpleNamespace:
        self.calls.append(kwargs)
        return SimpleNamespace(text=self.text)


def _fake_client(text: str) -> tuple[Any, _FakeModels]:
    models = _FakeModels(text)
    return SimpleNamespace(aio=SimpleNamespace(models=models)), models


def test_parse_edit_response_takes_first_json_object() -> None:
    text = (
        "Sure! Here you go:\n"
        '{"editedTasks": [{"id": "t1", "title": "CS101 Essay", "dueDate": "2026-03-12", '
        '"status": "To Do", "comments": ["draft"]}]}\nThanks.'
    )

    [edited] = parse_edit_response(text)

    assert edited.id == "t1"
    assert edited.title == "CS101 Essay"
    assert edited.due_date == date(2026, 3, 12)
    assert edited.status == TaskStatus.TODO


def test_parse_edit_response_drops_unknown_status() -> None:
    [edited] = parse_edit_response('{"editedTasks": [{"id": "t1", "title": "x", "status": "Soon"}]}')
    assert edited.status is None


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("no json here", "AI did not return valid JSON"),
        ('{"tasks": []}', "Invalid AI response format"),
        ('{"editedTasks": {"id": "t1"}}', "Invalid AI response format"),
    ],
)
def test_parse_edit_response_rejects_malformed_replies(text: str, message: str) -> None:
    with pytest.raises(MalformedAIResponseError, match=message) as exc:
        parse_edit_response(text)
    assert exc.value.raw == text


def test_parse_extraction_response_strips_code_fences() -> None:
    text = '```json\n[{"title": "Quiz", "dueDate": "2026-03-20", "priority": "HIGH"}]\n```'

    [task] = parse_extraction_response(text)

    assert task.title == "Quiz"
    assert task.due_date == date(2026, 3, 20)
    assert task.priority == "high"
    assert task.status is None


def test_parse_extraction_response_requires_array() -> None:
    with pytest.raises(MalformedAIResponseError) as exc:
        parse_extraction_response('{"title": "not a list"}')
    assert exc.value.raw == '{"title": "not a list"}'


def test_decode_image_data_url() -> None:
    inline = decode_image_data_url(PNG_URL)
    assert inline.mime_type == "image/png"
    assert inline.data == b"\x89PNG fake"


@pytest.mark.parametrize(
    "image",
    ["data:image/bmp;base64,AAAA", "https://example.com/a.png", "data:image/png;base64,@@@"],
)
def test_decode_image_data_url_rejects_unsupported_payloads(image: str) -> None:
    with pytest.raises(InvalidImageError, match="Invalid image format"):
        decode_image_data_url(image)


def test_edit_prompt_lists_each_task() -> None:
    prompt = build_edit_prompt(
        [
            AIEditTaskInput(id="t1", title="Essay", due_date=date(2026, 3, 12), comments=["a"]),
            AIEditTaskInput(id="t2", title="Quiz"),
        ],
        "prefix with CS101",
    )

    assert 'USER INSTRUCTION: "prefix with CS101"' in prompt
    assert "- ID: t1" in prompt
    assert "- Due Date: Not set" in prompt
    assert "editedTasks" in prompt


def test_extraction_prompt_defaults_year_and_appends_instructions() -> None:
    prompt = build_extraction_prompt("only homework", year=2026)
    assert "assume 2026" in prompt
    assert prompt.endswith("User instructions: only homework")
    assert "User instructions" not in build_extraction_prompt("   ", year=2026)


def test_assistant_requires_api_key() -> None:
    with pytest.raises(GeminiNotConfiguredError, match="GEMINI_API_KEY not configured on server"):
        GeminiAssistant("  ", "gemini-2.0-flash")


@pytest.mark.asyncio
async def test_edit_tasks_calls_configured_model() -> None:
    client, models = _fake_client('{"editedTasks": [{"id": "t1", "title": "Edited"}]}')
    assistant = GeminiAssistant("", "gemini-test", client=client)

    edited = await assistant.edit_tasks([AIEditTaskInput(id="t1", title="Orig")], "rename")

    assert [task.title for task in edited] == ["Edited"]
    assert models.calls[0]["model"] == "gemini-test"


@pytest.mark.asyncio
async def test_extract_tasks_sends_inline_image_and_returns_raw_text() -> None:
    reply = '[{"title": "Read ch. 4", "notes": "Time: 3:00 PM"}]'
    client, models = _fake_client(reply)
    assistant = GeminiAssistant("", "gemini-test", client=client)

    tasks, raw = await assistant.extract_tasks(PNG_URL, "homework only")

    assert raw == reply
    assert tasks[0].notes == "Time: 3:00 PM"
    prompt, image_part = models.calls[0]["contents"]
    assert "homework only" in prompt
    assert image_part.inline_data.mime_type == "image/png"
