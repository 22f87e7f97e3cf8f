from __future__ import annotations

import json
import urllib.error
import urllib.request
from typing import Any, Dict, Optional, Tuple


def request_json(base: str, method: str, path: str, body: Optional[Any] = None, timeout: float = 10.0) -> Tuple[int, Any]:
    """
    Выполняет HTTP запрос к серверу задач и возвращает (status, разобранный JSON или None).
    Сетевые ошибки возвращаются как status -1.
    """
    url = base.rstrip("/") + path
    data_bytes = None
    headers: Dict[str, str] = {}
    if body is not None:
        data_bytes = json.dumps(body, ensure_ascii=False).encode("utf-8")
        headers["Content-Type"] = "application/json; charset=utf-8"

    req = urllib.request.Request(url, data=data_bytes, method=method, headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            content = resp.read()
            parsed = json.loads(content.decode("utf-8")) if content else None
            return resp.status, parsed
    except urllib.error.HTTPError as e:
        try:
            detail = e.read().decode("utf-8")
            parsed = json.loads(detail) if detail else None
        except (UnicodeDecodeError, json.JSONDecodeError):
            parsed = None
        return e.code, parsed
    except (urllib.error.URLError, OSError) as e:
        return -1, {"error": str(e)}
