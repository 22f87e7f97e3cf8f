from __future__ import annotations

import http.client
import json
import logging

import pytest

from todo_api.api.http_server import MAX_BODY_BYTES, TodoRequestHandler
from todo_api.services.models import Task
from todo_api.services.storage import TaskStore
from todo_api.tools.client import request_json


TASKS = "/api/tasks"


def _raw(server, method: str, path: str, body: bytes = b"", headers=None):
    host, port = server.server_address[:2]
    conn = http.client.HTTPConnection(host, port, timeout=10)
    try:
        conn.request(method, path, body=body or None, headers=headers or {})
        resp = conn.getresponse()
        return resp.status, dict(resp.getheaders()), resp.read()
    finally:
        conn.close()


def test_full_lifecycle(base_url):
    status, created = request_json(base_url, "POST", TASKS, {"description": "Buy milk"})
    assert status == 201
    assert created["id"]
    assert created["description"] == "Buy milk"
    assert created["completed"] is False

    task_id = created["id"]
    status, fetched = request_json(base_url, "GET", f"{TASKS}/{task_id}")
    assert status == 200
    assert fetched == created

    status, updated = request_json(
        base_url, "PUT", f"{TASKS}/{task_id}", {"description": "Buy milk and eggs", "completed": True}
    )
    assert status == 200
    assert updated == {"id": task_id, "description": "Buy milk and eggs", "completed": True}

    status, body = request_json(base_url, "DELETE", f"{TASKS}/{task_id}")
    assert status == 204
    assert body is None

    status, body = request_json(base_url, "GET", f"{TASKS}/{task_id}")
    assert status == 404
    assert task_id in body["error"]


def test_list_returns_array(base_url, store: TaskStore):
    store.seed_defaults()
    status, body = request_json(base_url, "GET", TASKS)
    assert status == 200
    assert isinstance(body, list)
    assert len(body) == 3
    assert {"id", "description", "completed"} == set(body[0])


def test_list_with_trailing_slash(base_url):
    status, body = request_json(base_url, "GET", TASKS + "/")
    assert status == 200
    assert body == []


def test_create_sets_location_header(server):
    status, headers, raw = _raw(
        server, "POST", TASKS, json.dumps({"description": "Buy milk"}).encode(), {"Content-Type": "application/json"}
    )
    assert status == 201
    created = json.loads(raw)
    assert headers["Location"] == f"{TASKS}/{created['id']}"
    assert headers["Content-Type"].startswith("application/json")


def test_create_ignores_client_id(base_url, store: TaskStore, caplog):
    with caplog.at_level(logging.WARNING, logger="todo_api.api.http_server"):
        status, created = request_json(base_url, "POST", TASKS, {"id": "client-id", "description": "Buy milk"})
    assert status == 201
    assert created["id"] != "client-id"
    assert store.get_task("client-id") is None
    assert "client-id" in caplog.text


@pytest.mark.parametrize(
    "payload",
    [
        {"description": "abcd"},
        {"description": "x" * 256},
        {"description": "      "},
        {"completed": True},
        {"description": 42},
        {"description": "Buy milk", "completed": "true"},
        ["Buy milk"],
    ],
)
def test_create_validation_errors(base_url, store: TaskStore, payload):
    status, body = request_json(base_url, "POST", TASKS, payload)
    assert status == 400
    assert body["error"]
    assert len(store) == 0


def test_create_boundary_lengths(base_url):
    for length in (5, 255):
        status, body = request_json(base_url, "POST", TASKS, {"description": "d" * length})
        assert status == 201
        assert len(body["description"]) == length


def test_create_invalid_json(server):
    status, _headers, raw = _raw(server, "POST", TASKS, b"{not json", {"Content-Type": "application/json"})
    assert status == 400
    assert "Invalid JSON" in json.loads(raw)["error"]


def test_create_without_body(server):
    status, _headers, raw = _raw(server, "POST", TASKS, headers={"Content-Length": "0"})
    assert status == 400
    assert json.loads(raw)["error"]


def test_update_missing_returns_404(base_url):
    status, body = request_json(base_url, "PUT", f"{TASKS}/missing", {"description": "Valid description"})
    assert status == 404
    assert "missing" in body["error"]


def test_update_validation_error(base_url, store: TaskStore):
    task_id = request_json(base_url, "POST", TASKS, {"description": "Buy milk"})[1]["id"]
    status, body = request_json(base_url, "PUT", f"{TASKS}/{task_id}", {"description": "abc", "completed": True})
    assert status == 400
    assert "between 5 and 255" in body["error"]
    assert store.get_task(task_id).description == "Buy milk"


def test_update_keeps_path_id(base_url, store: TaskStore):
    task_id = request_json(base_url, "POST", TASKS, {"description": "Buy milk"})[1]["id"]
    status, body = request_json(
        base_url, "PUT", f"{TASKS}/{task_id}", {"id": "other", "description": "Buy bread", "completed": False}
    )
    assert status == 200
    assert body["id"] == task_id
    assert store.get_task("other") is None


def test_delete_twice(base_url):
    task_id = request_json(base_url, "POST", TASKS, {"description": "Buy milk"})[1]["id"]
    assert request_json(base_url, "DELETE", f"{TASKS}/{task_id}")[0] == 204
    assert request_json(base_url, "DELETE", f"{TASKS}/{task_id}")[0] == 404


def test_delete_has_empty_body(server, store: TaskStore):
    task = store.seed_defaults()[0]
    status, headers, raw = _raw(server, "DELETE", f"{TASKS}/{task.id}")
    assert status == 204
    assert raw == b""
    assert headers["Content-Length"] == "0"


def test_unknown_route(base_url):
    status, body = request_json(base_url, "GET", "/api/other")
    assert status == 404
    assert body["error"]


@pytest.mark.parametrize(
    "method, path, allow",
    [
        ("PUT", TASKS, "GET, POST"),
        ("DELETE", TASKS, "GET, POST"),
        ("OPTIONS", TASKS, "GET, POST"),
        ("HEAD", TASKS, "GET, POST"),
        ("POST", f"{TASKS}/some-id", "GET, PUT, DELETE"),
        ("PATCH", f"{TASKS}/some-id", "GET, PUT, DELETE"),
        ("HEAD", f"{TASKS}/some-id", "GET, PUT, DELETE"),
        ("OPTIONS", f"{TASKS}/some-id", "GET, PUT, DELETE"),
    ],
)
def test_method_not_allowed(server, method, path, allow):
    status, headers, raw = _raw(server, method, path)
    assert status == 405
    assert headers["Allow"] == allow
    assert headers["Content-Type"].startswith("application/json")
    if method == "HEAD":
        assert raw == b""
    else:
        assert json.loads(raw)["error"]


def test_percent_encoded_id(base_url, store: TaskStore):
    store.add_task(Task(id="a b", description="Spaced id task"))
    status, body = request_json(base_url, "GET", f"{TASKS}/a%20b")
    assert status == 200
    assert body["id"] == "a b"

    assert request_json(base_url, "DELETE", f"{TASKS}/a%20b")[0] == 204
    assert store.get_task("a b") is None


def test_oversized_body_rejected(server, store: TaskStore):
    status, _headers, raw = _raw(
        server,
        "POST",
        TASKS,
        b"",
        {"Content-Type": "application/json", "Content-Length": str(MAX_BODY_BYTES + 1)},
    )
    assert status == 400
    assert "too large" in json.loads(raw)["error"]
    assert len(store) == 0


def test_handler_times_out_stalled_connections():
    assert TodoRequestHandler.timeout is not None
    assert TodoRequestHandler.timeout > 0


def test_admin_logs(base_url):
    task_id = request_json(base_url, "POST", TASKS, {"description": "Buy milk"})[1]["id"]
    request_json(base_url, "DELETE", f"{TASKS}/{task_id}")

    status, body = request_json(base_url, "GET", "/admin/logs?limit=1")
    assert status == 200
    assert len(body) == 1
    assert body[0]["action"] == "delete"
    assert body[0]["task_id"] == task_id
    assert body[0]["origin"] == "127.0.0.1"

    status, body = request_json(base_url, "GET", "/admin/logs?limit=abc")
    assert status == 200
    assert [r["action"] for r in body] == ["create", "delete"]


def test_internal_error_returns_500(base_url, store: TaskStore, monkeypatch):
    def boom():
        raise RuntimeError("boom")

    monkeypatch.setattr(store, "list_tasks", boom)
    status, body = request_json(base_url, "GET", TASKS)
    assert status == 500
    assert body == {"error": "internal server error"}
