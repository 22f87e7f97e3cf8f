from __future__ import annotations

import argparse
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from todo_api.tools.client import request_json


TASKS = "/api/tasks"
TASK_FIELDS = {"id", "description", "completed"}


@dataclass
class CheckResult:
    name: str
    expected: Any
    actual: Any
    status: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "name": self.name,
            "expected": self.expected,
            "actual": self.actual,
            "status": self.status,
        }


def _log(logfile: Optional[str], result: CheckResult) -> None:
    if not logfile:
        return
    os.makedirs(os.path.dirname(logfile) or ".", exist_ok=True)
    with open(logfile, "a", encoding="utf-8") as f:
        f.write(json.dumps(result.to_dict(), ensure_ascii=False) + "\n")


def run_suite(base: str, logfile: Optional[str] = None) -> Dict[str, Any]:
    results: List[CheckResult] = []

    def record(name: str, expected: Any, actual: Any, ok: bool) -> None:
        res = CheckResult(name=name, expected=expected, actual=actual, status="pass" if ok else "fail")
        results.append(res)
        _log(logfile, res)

    # 1) create
    status, body = request_json(base, "POST", TASKS, {"description": "Buy milk"})
    ok = (
        status == 201
        and isinstance(body, dict)
        and TASK_FIELDS <= set(body.keys())
        and bool(body.get("id"))
        and body.get("completed") is False
    )
    task_id = body["id"] if ok else "missing"
    record("create", {"status": 201, "fields": sorted(TASK_FIELDS), "completed": False}, {"status": status, "body": body}, ok)

    # 2) get created
    status, body = request_json(base, "GET", f"{TASKS}/{task_id}")
    ok = status == 200 and isinstance(body, dict) and body.get("description") == "Buy milk"
    record("get_after_create", {"status": 200, "description": "Buy milk"}, {"status": status, "body": body}, ok)

    # 3) list contains created
    status, body = request_json(base, "GET", TASKS)
    ok = status == 200 and isinstance(body, list) and any(t.get("id") == task_id for t in body)
    record("list_after_create", {"status": 200, "contains_created": True}, {"status": status, "body": body}, ok)

    # 4) update
    status, body = request_json(base, "PUT", f"{TASKS}/{task_id}", {"description": "Buy milk and eggs", "completed": True})
    ok = (
        status == 200
        and isinstance(body, dict)
        and body.get("id") == task_id
        and body.get("description") == "Buy milk and eggs"
        and body.get("completed") is True
    )
    record("update", {"status": 200, "completed": True}, {"status": status, "body": body}, ok)

    # 5) validation: too short / too long / blank
    for name, payload in (
        ("create_too_short", {"description": "abcd"}),
        ("create_too_long", {"description": "x" * 256}),
        ("create_blank", {"description": "        "}),
    ):
        status, body = request_json(base, "POST", TASKS, payload)
        ok = status == 400 and isinstance(body, dict) and bool(body.get("error"))
        record(name, {"status": 400}, {"status": status, "body": body}, ok)

    status, body = request_json(base, "PUT", f"{TASKS}/{task_id}", {"description": "abc"})
    ok = status == 400
    record("update_too_short", {"status": 400}, {"status": status, "body": body}, ok)

    # 6) delete, then delete again
    status, body = request_json(base, "DELETE", f"{TASKS}/{task_id}")
    ok = status == 204 and body is None
    record("delete", {"status": 204, "body": None}, {"status": status, "body": body}, ok)

    status, body = request_json(base, "DELETE", f"{TASKS}/{task_id}")
    ok = status == 404
    record("delete_again", {"status": 404}, {"status": status, "body": body}, ok)

    # 7) get / update missing
    status, body = request_json(base, "GET", f"{TASKS}/{task_id}")
    ok = status == 404 and isinstance(body, dict) and "error" in body
    record("get_after_delete", {"status": 404}, {"status": status, "body": body}, ok)

    status, body = request_json(base, "PUT", f"{TASKS}/{task_id}", {"description": "Valid description"})
    ok = status == 404
    record("update_missing", {"status": 404}, {"status": status, "body": body}, ok)

    # 8) logs endpoint
    status, body = request_json(base, "GET", "/admin/logs?limit=5")
    ok = status == 200 and isinstance(body, list)
    record("logs", {"status": 200, "is_list": True}, {"status": status, "body": body}, ok)

    passed = sum(1 for r in results if r.status == "pass")
    summary = {
        "total": len(results),
        "passed": passed,
        "failed": len(results) - passed,
        "failures": [r.name for r in results if r.status != "pass"],
        "logfile": logfile,
    }
    _log(logfile, CheckResult(name="summary", expected=None, actual=summary, status="summary"))
    return summary


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="End-to-end check of a running Task API server.")
    parser.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL of the Task API server")
    parser.add_argument("--logfile", default="test_results.log", help="Where to store check results (JSONL)")
    args = parser.parse_args(argv)
    summary = run_suite(args.base, args.logfile)
    print(json.dumps(summary, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
