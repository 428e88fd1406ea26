# ruff: noqa: INP001
"""Request-id propagation and JSON error payloads."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from starlette.requests import Request

from planner.api.deps import get_assistant
from planner.core import error_handling
from planner.core.auth import AuthContext, get_auth_context
from planner.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _get_request_id,
    _http_exception_exception_handler,
    _request_validation_exception_handler,
    _response_validation_exception_handler,
    install_error_handling,
)
from planner.main import app as planner_app


def _app() -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    return app


def _assert_request_id(resp) -> str:
    body = resp.json()
    request_id = body.get("request_id")
    assert isinstance(request_id, str) and request_id
    assert resp.headers.get(REQUEST_ID_HEADER) == request_id
    return request_id


@pytest.fixture
def planner_client() -> Iterator[TestClient]:
    planner_app.dependency_overrides[get_auth_context] = lambda: AuthContext(
        uid="uid-1",
        email="me@example.com",
    )
    planner_app.dependency_overrides[get_assistant] = lambda: object()
    try:
        yield TestClient(planner_app, raise_server_exceptions=False)
    finally:
        planner_app.dependency_overrides.clear()


def test_unknown_status_on_task_update_is_422_with_request_id(
    planner_client: TestClient,
) -> None:
    resp = planner_client.put("/api/tasks/page-1", json={"status": "Someday"})

    assert resp.status_code == 422
    detail = resp.json()["detail"]
    assert isinstance(detail, list)
    assert detail[0]["loc"][-1] == "status"
    _assert_request_id(resp)


def test_non_json_ai_edit_body_is_422_not_500(planner_client: TestClient) -> None:
    resp = planner_client.post(
        "/api/ai-edit-tasks",
        content=b"\xffnot-json",
        headers={"content-type": "text/plain"},
    )

    assert resp.status_code == 422
    _assert_request_id(resp)


def test_missing_token_401_carries_request_id() -> None:
    resp = TestClient(planner_app).get("/api/tasks", headers={REQUEST_ID_HEADER: "trace-401"})

    assert resp.status_code == 401
    assert resp.json() == {"detail": "Unauthorized", "request_id": "trace-401"}
    assert resp.headers.get(REQUEST_ID_HEADER) == "trace-401"


def test_unhandled_exception_is_generic_500() -> None:
    app = _app()

    @app.get("/boom")
    def boom() -> None:
        raise RuntimeError("notion exploded")

    resp = TestClient(app, raise_server_exceptions=False).get("/boom")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"
    _assert_request_id(resp)


def test_invalid_response_model_is_500() -> None:
    class Out(BaseModel):
        title: str = Field(min_length=1)

    app = _app()

    @app.get("/task", response_model=Out)
    def bad() -> dict[str, str]:
        return {"title": ""}

    resp = TestClient(app, raise_server_exceptions=False).get("/task")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"
    _assert_request_id(resp)


def test_client_request_id_is_trimmed_and_echoed() -> None:
    app = _app()

    @app.get("/tasks/{task_id}")
    def task(task_id: str) -> None:
        raise HTTPException(status_code=404, detail="missing")

    resp = TestClient(app).get("/tasks/x", headers={REQUEST_ID_HEADER: "  trace-7  "})

    assert resp.json()["request_id"] == "trace-7"
    assert resp.headers.get(REQUEST_ID_HEADER) == "trace-7"


def test_slow_request_logs_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _fake_warning(message: str, *args: object, **kwargs: object) -> None:
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    ticks = iter((10.0, 12.5))
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 500)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _fake_warning)

    app = _app()

    @app.get("/tasks")
    def tasks() -> dict[str, list[str]]:
        return {"tasks": []}

    resp = TestClient(app).get("/tasks")

    assert resp.status_code == 200
    assert any(
        message == "http.request.slow"
        and extra.get("slow_threshold_ms") == 500
        and extra.get("duration_ms") == 2500
        for message, extra in warnings
    )


def test_health_probe_skips_request_log(monkeypatch: pytest.MonkeyPatch) -> None:
    infos: list[str] = []
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", False)
    monkeypatch.setattr(
        error_handling.logger,
        "info",
        lambda message, *args, **kwargs: infos.append(message),
    )

    app = _app()

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    resp = TestClient(app).get("/healthz")

    assert resp.json() == {"ok": True}
    assert resp.headers.get(REQUEST_ID_HEADER)
    assert "http.request.completed" not in infos


def test_get_request_id_ignores_missing_or_invalid_state() -> None:
    assert _get_request_id(Request({"type": "http", "headers": [], "state": {}})) is None
    assert _get_request_id(Request({"type": "http", "headers": [], "state": {"request_id": 7}})) is None
    assert _get_request_id(Request({"type": "http", "headers": [], "state": {"request_id": ""}})) is None


def test_error_payload_without_request_id() -> None:
    assert _error_payload(detail="x", request_id=None) == {"detail": "x"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("handler", "expected"),
    [
        (_request_validation_exception_handler, "Expected RequestValidationError"),
        (_response_validation_exception_handler, "Expected ResponseValidationError"),
        (_http_exception_exception_handler, "Expected StarletteHTTPException"),
    ],
)
async def test_handlers_reject_wrong_exception_type(handler, expected: str) -> None:
    req = Request({"type": "http", "headers": [], "state": {}})
    with pytest.raises(TypeError, match=expected):
        await handler(req, Exception("x"))


def test_json_safe_decodes_binary_and_stringifies_unknowns() -> None:
    class Opaque:
        def __str__(self) -> str:
            return "opaque"

    assert error_handling._json_safe(b"\xff") == "\ufffd"
    assert error_handling._json_safe(memoryview(b"ok")) == "ok"
    assert error_handling._json_safe({"k": (1, Opaque())}) == {"k": [1, "opaque"]}
