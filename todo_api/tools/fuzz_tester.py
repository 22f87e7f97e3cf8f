from __future__ import annotations

import argparse
import json
import os
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from todo_api.tools.client import request_json


TASKS = "/api/tasks"

# documented statuses per action; anything else counts as "unexpected"
EXPECTED_STATUSES = {
    "create": {201, 400},
    "update": {200, 400, 404},
    "delete": {204, 404},
    "get": {200, 404},
}


def random_description(rng: random.Random) -> Any:
    samples: List[Any] = [
        "Buy milk",
        "Call mom back",
        "Read a book",
        "Fix the login bug",
        "Plan the trip",
        "x" * 255,
        "x" * 256,
        "abcd",
        "",
        "      ",
        None,
        123,
    ]
    return rng.choice(samples)


def random_completed(rng: random.Random) -> Any:
    samples: List[Any] = [True, False, None, "yes", 1]
    return rng.choice(samples)


def _payload(rng: random.Random) -> Dict[str, Any]:
    body: Dict[str, Any] = {"description": random_description(rng)}
    completed = random_completed(rng)
    if completed is not None:
        body["completed"] = completed
    return body


def _log_line(logfile: Optional[str], entry: Dict[str, Any]) -> None:
    if not logfile:
        return
    os.makedirs(os.path.dirname(logfile) or ".", exist_ok=True)
    with open(logfile, "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False) + "\n")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def run_scenario(base: str, steps: int, rng: random.Random, logfile: Optional[str] = None) -> Dict[str, int]:
    known_ids: List[str] = []
    stats: Dict[str, int] = {"ok": 0, "fail": 0, "unexpected": 0}

    for i in range(steps):
        action = rng.choice(["create", "update", "delete", "get"])
        entry: Dict[str, Any] = {"timestamp": _now(), "step": i + 1, "action": action}

        if action == "create":
            body = _payload(rng)
            entry["request"] = {"path": TASKS, "body": body}
            status, resp = request_json(base, "POST", TASKS, body)
            if status == 201 and isinstance(resp, dict) and resp.get("id"):
                known_ids.append(resp["id"])
        elif action == "update":
            task_id = _pick_id(known_ids, rng)
            body = _payload(rng)
            entry["request"] = {"path": f"{TASKS}/{task_id}", "body": body}
            status, resp = request_json(base, "PUT", f"{TASKS}/{task_id}", body)
        elif action == "delete":
            task_id = _pick_id(known_ids, rng)
            entry["request"] = {"path": f"{TASKS}/{task_id}", "body": None}
            status, resp = request_json(base, "DELETE", f"{TASKS}/{task_id}")
            if status == 204 and task_id in known_ids:
                known_ids.remove(task_id)
        else:
            task_id = _pick_id(known_ids, rng)
            entry["request"] = {"path": f"{TASKS}/{task_id}", "body": None}
            status, resp = request_json(base, "GET", f"{TASKS}/{task_id}")

        entry["response"] = {"status": status, "body": resp}
        _record(stats, status)
        if status not in EXPECTED_STATUSES[action]:
            stats["unexpected"] += 1
        entry["result"] = "ok" if 200 <= status < 300 else "fail"
        _log_line(logfile, entry)

    _log_line(logfile, {"timestamp": _now(), "summary": {"steps": steps, **stats}})
    return stats


def _pick_id(ids: List[str], rng: random.Random) -> str:
    if ids and rng.random() < 0.7:
        return rng.choice(ids)
    return f"missing-{rng.randint(1, 1000)}"


def _record(stats: Dict[str, int], status: int) -> None:
    if 200 <= status < 300:
        stats["ok"] += 1
    else:
        stats["fail"] += 1


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Random action tester for the Task API.")
    parser.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL of the Task API server")
    parser.add_argument("--steps", type=int, default=30, help="How many random actions to run")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    parser.add_argument("--logfile", default="fuzz_results.log", help="Where to store fuzz results (JSONL)")
    args = parser.parse_args(argv)

    rng = random.Random(args.seed)
    stats = run_scenario(args.base, args.steps, rng, logfile=args.logfile)
    print("Fuzzing finished.")
    print(f"Total steps: {args.steps}")
    print(f"OK (2xx): {stats['ok']}, Fail (!2xx): {stats['fail']}, Unexpected status: {stats['unexpected']}")


if __name__ == "__main__":
    main()
