from __future__ import annotations

import json
import os
import threading
from collections import deque
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Deque, Dict, List, Optional


DEFAULT_MAX_RECORDS = 1000


@dataclass
class ActionRecord:
    timestamp: str
    action: str
    task_id: Optional[str]
    status: str
    origin: Optional[str]
    details: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ActionLogger:
    """
    Потокобезопасный журнал действий над задачами.
    Последние записи хранятся в памяти; если задан path, каждая запись
    дополнительно дописывается в JSONL файл (одна строка JSON на событие).
    """

    def __init__(self, path: Optional[str] = None, max_records: int = DEFAULT_MAX_RECORDS) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._records: Deque[ActionRecord] = deque(maxlen=max_records)

    @property
    def path(self) -> Optional[str]:
        return self._path

    def log(
        self,
        action: str,
        task_id: Optional[str],
        status: str,
        origin: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActionRecord:
        record = ActionRecord(
            timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            action=action,
            task_id=task_id,
            status=status,
            origin=origin,
            details=details or {},
        )

        with self._lock:
            self._records.append(record)
            if self._path:
                # гарантируем существование директории
                os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
                with open(self._path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(record.to_dict(), ensure_ascii=False) + "\n")

        return record

    def tail(self, limit: int = 100) -> List[Dict[str, Any]]:
        """
        Возвращает последние limit записей, от старых к новым.
        """
        if limit <= 0:
            return []

        with self._lock:
            records = list(self._records)
        return [r.to_dict() for r in records[-limit:]]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)
