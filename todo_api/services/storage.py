from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import replace
from typing import Dict, List, Optional

from todo_api.services.action_log import ActionLogger
from todo_api.services.models import Task


logger = logging.getLogger(__name__)

DEFAULT_TASKS = (
    "Learn the task API",
    "Implement the CRUD endpoints",
    "Document the endpoints",
)


def new_task_id() -> str:
    return str(uuid.uuid4())


class TaskStore:
    """
    Хранит задачи в памяти, ключ: строковый UUID.
    Все операции выполняются под одним lock, наружу отдаются только копии.
    """

    def __init__(self, action_log: Optional[ActionLogger] = None) -> None:
        self._lock = threading.Lock()
        self._tasks: Dict[str, Task] = {}
        self._logger = action_log

    @property
    def action_log(self) -> Optional[ActionLogger]:
        return self._logger

    def _log(self, action: str, task_id: Optional[str], status: str, origin: Optional[str], details: Optional[dict] = None) -> None:
        if self._logger is not None:
            self._logger.log(action=action, task_id=task_id, status=status, origin=origin, details=details)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def list_tasks(self) -> List[Task]:
        with self._lock:
            return [replace(t) for t in self._tasks.values()]

    def get_task(self, task_id: str) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            return replace(task) if task else None

    def get_logs(self, limit: int = 100) -> List[dict]:
        if self._logger is None:
            return []
        return self._logger.tail(limit)

    def add_task(self, task: Task, origin: Optional[str] = None) -> Task:
        """
        Сохраняет задачу. Если id не задан, генерирует новый UUID.
        Повторное добавление существующего id запрещено.
        """
        stored = replace(task)
        with self._lock:
            if not stored.id:
                stored.id = new_task_id()
                while stored.id in self._tasks:
                    stored.id = new_task_id()
            elif stored.id in self._tasks:
                raise ValueError(f"Task id already exists: {stored.id}")
            self._tasks[stored.id] = stored
            result = replace(stored)

        logger.debug("Task %s created", result.id)
        self._log("create", result.id, "success", origin, {"description": result.description, "completed": result.completed})
        return result

    def update_task(self, task_id: str, data: Task, origin: Optional[str] = None) -> Optional[Task]:
        """
        Полностью заменяет description и completed; id сохраняется.
        """
        with self._lock:
            task = self._tasks.get(task_id)
            if task is not None:
                task.description = data.description
                task.completed = data.completed
                result = replace(task)
            else:
                result = None

        if result is None:
            self._log("update", task_id, "not_found", origin, {})
            return None

        logger.debug("Task %s updated", task_id)
        self._log("update", task_id, "success", origin, {"description": result.description, "completed": result.completed})
        return result

    def remove_task(self, task_id: str, origin: Optional[str] = None) -> bool:
        with self._lock:
            existed = self._tasks.pop(task_id, None) is not None

        if not existed:
            self._log("delete", task_id, "not_found", origin, {})
            return False

        logger.debug("Task %s deleted", task_id)
        self._log("delete", task_id, "success", origin, {})
        return True

    def seed_defaults(self) -> List[Task]:
        """
        Заполняет хранилище примерами задач при старте сервера.
        """
        seeded = [self.add_task(Task(id="", description=d), origin="seed") for d in DEFAULT_TASKS]
        logger.info("Seeded %d example tasks", len(seeded))
        return seeded
