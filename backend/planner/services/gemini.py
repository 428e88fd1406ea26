"""Gemini-backed assistants for batch task edits and screenshot task extraction."""

from __future__ import annotations

import base64
import binascii
import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from google import genai
from google.genai import types
from pydantic import ValidationError

from planner.core.logging import get_logger
from planner.core.time import utcnow
from planner.schemas.tasks import EditedTask, ParsedTask, TaskStatus

if TYPE_CHECKING:
    from planner.schemas.tasks import AIEditTaskInput

logger = get_logger(__name__)

IMAGE_DATA_URL = re.compile(r"^data:image/(png|jpg|jpeg|gif|webp);base64,(.+)$", re.DOTALL)
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")
_STATUS_CHOICES = ", ".join(f'"{status.value}"' for status in TaskStatus)


class GeminiNotConfiguredError(RuntimeError):
    """Raised when the Gemini API key is missing."""

    def __init__(self, message: str = "GEMINI_API_KEY not configured on server") -> None:
        super().__init__(message)


class MalformedAIResponseError(ValueError):
    """Model output did not parse into the expected JSON shape."""

    def __init__(self, message: str, *, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class InvalidImageError(ValueError):
    """Image payload is not a supported base64 data URL."""


@dataclass(frozen=True)
class InlineImage:
    mime_type: str
    data: bytes


def decode_image_data_url(image: str) -> InlineImage:
    match = IMAGE_DATA_URL.match(image.strip())
    if match is None:
        msg = "Invalid image format"
        raise InvalidImageError(msg)
    try:
        data = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as exc:
        msg = "Invalid image format"
        raise InvalidImageError(msg) from exc
    return InlineImage(mime_type=f"image/{match.group(1)}", data=data)


def build_edit_prompt(tasks: list[AIEditTaskInput], instruction: str) -> str:
    blocks = []
    for index, task in enumerate(tasks, start=1):
        notes = ", ".join(task.comments) if task.comments else "None"
        due = task.due_date.isoformat() if task.due_date else "Not set"
        blocks.append(
            f"Task {index}:\n"
            f"- ID: {task.id}\n"
            f"- Title: {task.title}\n"
            f"- Due Date: {due}\n"
            f"- Status: {task.status or 'Not set'}\n"
            f"- Notes: {notes}\n",
        )
    current = "\n".join(blocks)
    return (
        "You are a task management AI assistant. The user has multiple tasks and wants "
        "to batch edit them.\n\n"
        f'USER INSTRUCTION: "{instruction}"\n\n'
        f"CURRENT TASKS:\n{current}\n"
        "Apply the user's instruction to ALL tasks and return a JSON object with the edited tasks.\n\n"
        "RULES:\n"
        "1. Keep the same ID for each task\n"
        "2. Preserve information not mentioned in the instruction\n"
        "3. If adding text, be smart about placement (e.g., course codes go at the start)\n"
        "4. Return valid JSON only\n\n"
        "Return format:\n"
        '{"editedTasks": [{"id": "original-id", "title": "edited title", '
        '"dueDate": "yyyy-mm-dd or null", "status": "status", "comments": ["notes"]}]}'
    )


def build_extraction_prompt(instructions: str | None, *, year: int) -> str:
    prompt = (
        "You are a task extraction assistant. Analyze the provided image (screenshot, photo, "
        "handwritten note, etc.) and extract all tasks/to-dos.\n\n"
        "DATE RULES:\n"
        f"- If a date is mentioned without a year, assume {year}\n"
        "- Format all dates as ISO format: YYYY-MM-DD\n\n"
        "TIME HANDLING:\n"
        '- If a specific time is mentioned, put it in "notes" as "Time: 3:00 PM"; '
        "never in the title\n\n"
        "For each task provide:\n"
        "- title (string)\n"
        "- dueDate (string | null): ISO date or null\n"
        f"- status (string): one of {_STATUS_CHOICES}\n"
        '- priority (string | null): "high", "medium", "low" or null\n'
        "- notes (string | null)\n\n"
        "Return ONLY a JSON array of tasks. If the image contains no tasks, return []."
    )
    if instructions and instructions.strip():
        prompt += f"\n\nUser instructions: {instructions.strip()}"
    return prompt


def parse_edit_response(text: str) -> list[EditedTask]:
    match = _JSON_OBJECT.search(text)
    if match is None:
        msg = "AI did not return valid JSON"
        raise MalformedAIResponseError(msg, raw=text)
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        msg = "AI did not return valid JSON"
        raise MalformedAIResponseError(msg, raw=text) from exc
    edited = payload.get("editedTasks") if isinstance(payload, dict) else None
    if not isinstance(edited, list):
        msg = "Invalid AI response format"
        raise MalformedAIResponseError(msg, raw=text)
    try:
        return [EditedTask.model_validate(item) for item in edited]
    except ValidationError as exc:
        msg = "Invalid AI response format"
        raise MalformedAIResponseError(msg, raw=text) from exc


def parse_extraction_response(text: str) -> list[ParsedTask]:
    content = text.strip()
    fenced = _CODE_FENCE.search(content)
    candidate = fenced.group(1) if fenced and fenced.group(1) else content
    try:
        payload: Any = json.loads(candidate)
    except json.JSONDecodeError as exc:
        msg = "Failed to parse structured response from vision model"
        raise MalformedAIResponseError(msg, raw=content) from exc
    if not isinstance(payload, list):
        msg = "Failed to parse structured response from vision model"
        raise MalformedAIResponseError(msg, raw=content)
    try:
        return [ParsedTask.model_validate(item) for item in payload]
    except ValidationError as exc:
        msg = "Failed to parse structured response from vision model"
        raise MalformedAIResponseError(msg, raw=content) from exc


class GeminiAssistant:
    """Stateless wrapper around the Gemini async client."""

    def __init__(self, api_key: str, model: str, *, client: genai.Client | None = None) -> None:
        if client is None and not api_key.strip():
            raise GeminiNotConfiguredError
        self._client = client or genai.Client(api_key=api_key.strip())
        self._model = model

    async def _generate(self, contents: list[Any]) -> str:
        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=contents,
        )
        return (response.text or "").strip()

    async def edit_tasks(self, tasks: list[AIEditTaskInput], prompt: str) -> list[EditedTask]:
        text = await self._generate([build_edit_prompt(tasks, prompt)])
        edited = parse_edit_response(text)
        logger.info(
            "ai.edit.success",
            extra={"input_count": len(tasks), "output_count": len(edited)},
        )
        return edited

    async def extract_tasks(
        self,
        image: str,
        instructions: str | None = None,
    ) -> tuple[list[ParsedTask], str]:
        inline = decode_image_data_url(image)
        prompt = build_extraction_prompt(instructions, year=utcnow().year)
        text = await self._generate(
            [prompt, types.Part.from_bytes(data=inline.data, mime_type=inline.mime_type)],
        )
        tasks = parse_extraction_response(text)
        logger.info("ai.parse_image.success", extra={"count": len(tasks)})
        return tasks, text
