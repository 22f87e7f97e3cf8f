from __future__ import annotations


class TaskError(Exception):
    """Base error of the task service. `status` is the HTTP code it maps to."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(TaskError, ValueError):
    status = 400


class NotFoundError(TaskError, LookupError):
    status = 404

    @classmethod
    def for_id(cls, task_id: str) -> "NotFoundError":
        return cls(f"Task not found with id: {task_id}")
