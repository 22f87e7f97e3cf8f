from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict


@dataclass
class Task:
    id: str
    description: str
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
        }
