from __future__ import annotations

import json
import logging
import re
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import parse_qs, unquote, urlparse

from todo_api.config import ServerConfig
from todo_api.services.errors import NotFoundError, TaskError, ValidationError
from todo_api.services.models import Task
from todo_api.services.storage import TaskStore
from todo_api.services.validation import validate_task_payload


logger = logging.getLogger(__name__)

BASE_PATH = "/api/tasks"

_COLLECTION_RE = re.compile(r"^/api/tasks/?$")
_TASK_ID_RE = re.compile(r"^/api/tasks/([^/]+)/?$")

_COLLECTION_METHODS = "GET, POST"
_ITEM_METHODS = "GET, PUT, DELETE"

MAX_BODY_BYTES = 64 * 1024


class MethodNotAllowed(TaskError):
    status = 405

    def __init__(self, allow: str) -> None:
        super().__init__("Method not allowed.")
        self.allow = allow


class TodoHTTPServer(ThreadingHTTPServer):
    def __init__(self, server_address, RequestHandlerClass, store: TaskStore):
        super().__init__(server_address, RequestHandlerClass)
        self.store = store


class TodoRequestHandler(BaseHTTPRequestHandler):
    server: TodoHTTPServer

    # seconds a connection may stall before its thread gives up
    timeout = 30

    def _origin(self) -> Optional[str]:
        try:
            return self.client_address[0]
        except (AttributeError, IndexError, TypeError):
            return None

    def _send_json(self, status: int, payload: Any, headers: Optional[dict] = None) -> None:
        data = json.dumps(payload, ensure_ascii=False).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(data)

    def _send_empty(self, status: int) -> None:
        self.send_response(status)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _send_error(self, error: TaskError) -> None:
        headers = {"Allow": error.allow} if isinstance(error, MethodNotAllowed) else None
        self._send_json(error.status, {"error": error.message}, headers)

    def _read_json_body(self) -> Any:
        length_str = self.headers.get("Content-Length")
        if not length_str:
            raise ValidationError("Request body is required.")
        try:
            length = int(length_str)
        except ValueError:
            raise ValidationError("Invalid Content-Length header.")
        if length <= 0:
            raise ValidationError("Request body is required.")
        if length > MAX_BODY_BYTES:
            raise ValidationError(f"Request body too large (limit {MAX_BODY_BYTES} bytes).")

        raw = self.rfile.read(length)
        try:
            return json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            raise ValidationError("Invalid JSON body. Expected object with description and completed.")

    def _dispatch(self, method: str) -> None:
        parsed = urlparse(self.path)
        path = parsed.path
        try:
            if path == "/admin/logs":
                if method != "GET":
                    raise MethodNotAllowed("GET")
                self._get_logs(parsed.query)
                return

            if _COLLECTION_RE.match(path):
                if method == "GET":
                    self._list_tasks()
                elif method == "POST":
                    self._create_task()
                else:
                    raise MethodNotAllowed(_COLLECTION_METHODS)
                return

            m = _TASK_ID_RE.match(path)
            if m:
                task_id = unquote(m.group(1))
                if method == "GET":
                    self._get_task(task_id)
                elif method == "PUT":
                    self._update_task(task_id)
                elif method == "DELETE":
                    self._delete_task(task_id)
                else:
                    raise MethodNotAllowed(_ITEM_METHODS)
                return

            raise NotFoundError(f"No route for {path}")
        except TaskError as e:
            logger.debug("%s %s -> %d: %s", method, path, e.status, e.message)
            self._send_error(e)
        except Exception:
            logger.exception("Unhandled error on %s %s", method, path)
            self._send_json(500, {"error": "internal server error"})

    def _list_tasks(self) -> None:
        tasks = self.server.store.list_tasks()
        self._send_json(200, [t.to_dict() for t in tasks])

    def _get_task(self, task_id: str) -> None:
        task = self.server.store.get_task(task_id)
        if task is None:
            raise NotFoundError.for_id(task_id)
        self._send_json(200, task.to_dict())

    def _create_task(self) -> None:
        payload = validate_task_payload(self._read_json_body())
        if payload.client_id:
            logger.warning("Ignoring client-supplied id %r on create; ids are server-generated", payload.client_id)

        created = self.server.store.add_task(
            Task(id="", description=payload.description, completed=payload.completed),
            origin=self._origin(),
        )
        self._send_json(201, created.to_dict(), {"Location": f"{BASE_PATH}/{created.id}"})

    def _update_task(self, task_id: str) -> None:
        payload = validate_task_payload(self._read_json_body())
        updated = self.server.store.update_task(
            task_id,
            Task(id=task_id, description=payload.description, completed=payload.completed),
            origin=self._origin(),
        )
        if updated is None:
            raise NotFoundError.for_id(task_id)
        self._send_json(200, updated.to_dict())

    def _delete_task(self, task_id: str) -> None:
        if not self.server.store.remove_task(task_id, origin=self._origin()):
            raise NotFoundError.for_id(task_id)
        self._send_empty(204)

    def _get_logs(self, query: str) -> None:
        params = parse_qs(query)
        try:
            limit = int(params.get("limit", ["100"])[0])
        except ValueError:
            limit = 100
        if limit <= 0:
            limit = 1
        self._send_json(200, self.server.store.get_logs(limit))

    def do_GET(self) -> None:
        self._dispatch("GET")

    def do_POST(self) -> None:
        self._dispatch("POST")

    def do_PUT(self) -> None:
        self._dispatch("PUT")

    def do_DELETE(self) -> None:
        self._dispatch("DELETE")

    def do_PATCH(self) -> None:
        self._dispatch("PATCH")

    def do_HEAD(self) -> None:
        self._dispatch("HEAD")

    def do_OPTIONS(self) -> None:
        self._dispatch("OPTIONS")

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


def build_server(config: ServerConfig, store: TaskStore) -> TodoHTTPServer:
    return TodoHTTPServer((config.host, config.port), TodoRequestHandler, store)
