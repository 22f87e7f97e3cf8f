from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from todo_api.services.errors import ValidationError


DESCRIPTION_MIN = 5
DESCRIPTION_MAX = 255


@dataclass(frozen=True)
class TaskPayload:
    """Validated body of a create/update request."""

    description: str
    completed: bool = False
    client_id: str = ""


def validate_description(description: object) -> str:
    """
    Описание обязательно, не пустое после trim и длиной 5..255 символов.
    Значение не нормализуется: сохраняется ровно то, что прислал клиент.
    """
    if description is None:
        raise ValidationError("Field 'description' is required.")
    if not isinstance(description, str):
        raise ValidationError("Field 'description' must be a string.")
    if not description.strip():
        raise ValidationError("Field 'description' must not be blank.")
    if not DESCRIPTION_MIN <= len(description) <= DESCRIPTION_MAX:
        raise ValidationError(
            f"Field 'description' must be between {DESCRIPTION_MIN} and {DESCRIPTION_MAX} characters "
            f"(got {len(description)})."
        )
    return description


def validate_completed(completed: object) -> bool:
    if completed is None:
        return False
    if not isinstance(completed, bool):
        raise ValidationError("Field 'completed' must be a boolean.")
    return completed


def validate_task_payload(body: Any) -> TaskPayload:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")

    description = validate_description(body.get("description"))
    completed = validate_completed(body.get("completed"))

    client_id = body.get("id")
    if client_id is not None and not isinstance(client_id, str):
        raise ValidationError("Field 'id' must be a string.")

    return TaskPayload(description=description, completed=completed, client_id=client_id or "")
