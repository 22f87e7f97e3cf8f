from __future__ import annotations

import threading
from typing import Iterator

import pytest

from todo_api.api.http_server import TodoHTTPServer, TodoRequestHandler
from todo_api.services.action_log import ActionLogger
from todo_api.services.storage import TaskStore


@pytest.fixture()
def action_log() -> ActionLogger:
    return ActionLogger()


@pytest.fixture()
def store(action_log: ActionLogger) -> TaskStore:
    return TaskStore(action_log)


@pytest.fixture()
def server(store: TaskStore) -> Iterator[TodoHTTPServer]:
    """
    Real TodoHTTPServer on an ephemeral port, served from a background thread.
    """
    srv = TodoHTTPServer(("127.0.0.1", 0), TodoRequestHandler, store)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    try:
        yield srv
    finally:
        srv.shutdown()
        srv.server_close()
        thread.join(timeout=5)


@pytest.fixture()
def base_url(server: TodoHTTPServer) -> str:
    host, port = server.server_address[:2]
    return f"http://{host}:{port}"
