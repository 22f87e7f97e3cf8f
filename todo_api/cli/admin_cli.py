from __future__ import annotations

import argparse
import json
import random
from typing import Any, Optional

from todo_api.tools.client import request_json


TASKS = "/api/tasks"


def cmd_list(args: argparse.Namespace) -> int:
    status, body = request_json(args.base, "GET", TASKS)
    if args.limit and isinstance(body, list):
        body = body[: args.limit]
    return _print_response(status, body)


def cmd_get(args: argparse.Namespace) -> int:
    return _print_response(*request_json(args.base, "GET", f"{TASKS}/{args.id}"))


def cmd_logs(args: argparse.Namespace) -> int:
    return _print_response(*request_json(args.base, "GET", f"/admin/logs?limit={args.limit}"))


def cmd_create(args: argparse.Namespace) -> int:
    body = {"description": args.description, "completed": args.completed}
    return _print_response(*request_json(args.base, "POST", TASKS, body))


def cmd_update(args: argparse.Namespace) -> int:
    body = {"description": args.description, "completed": args.completed}
    return _print_response(*request_json(args.base, "PUT", f"{TASKS}/{args.id}", body))


def cmd_complete(args: argparse.Namespace) -> int:
    """
    На сервере нет отдельного complete: читаем задачу и отправляем PUT с completed=true.
    """
    status, body = request_json(args.base, "GET", f"{TASKS}/{args.id}")
    if status != 200 or not isinstance(body, dict):
        return _print_response(status, body)
    update = {"description": body["description"], "completed": True}
    return _print_response(*request_json(args.base, "PUT", f"{TASKS}/{args.id}", update))


def cmd_delete(args: argparse.Namespace) -> int:
    return _print_response(*request_json(args.base, "DELETE", f"{TASKS}/{args.id}"))


def cmd_tests(args: argparse.Namespace) -> int:
    from todo_api.tools.smoke_suite import run_suite

    summary = run_suite(args.base, args.logfile)
    print("Test suite finished:")
    print(json.dumps(summary, ensure_ascii=False, indent=2))
    return 0 if summary["failed"] == 0 else 1


def cmd_fuzz_run(args: argparse.Namespace) -> int:
    from todo_api.tools.fuzz_tester import run_scenario

    rng = random.Random(args.seed)
    stats = run_scenario(args.base, args.steps, rng, logfile=args.logfile)
    print(json.dumps({"summary": stats, "logfile": args.logfile}, ensure_ascii=False, indent=2))
    return 0 if stats["unexpected"] == 0 else 1


PRESET_DESCRIPTIONS = [
    "Buy milk",
    "Call mom",
    "Finish report",
    "Read book",
    "Clean desk",
    "Plan trip",
    "Water plants",
    "Pay bills",
    "Workout",
    "Learn Python",
]


def cmd_random(args: argparse.Namespace) -> int:
    rng = random.Random(args.seed)
    created = 0
    for _ in range(args.count):
        body = {"description": rng.choice(PRESET_DESCRIPTIONS), "completed": rng.random() < 0.3}
        status, resp = request_json(args.base, "POST", TASKS, body)
        if 200 <= status < 300:
            created += 1
        _print_response(status, resp)
    print(f"Created {created} of {args.count} requested.")
    return 0 if created == args.count else 1


def _print_response(status: int, body: Any) -> int:
    print(f"Status: {status}")
    if body is not None:
        print(json.dumps(body, ensure_ascii=False, indent=2))
    return 0 if 200 <= status < 300 else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Admin CLI for the Task API server.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--base", default="http://127.0.0.1:8000", help="Base URL of the Task API server")

    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List all tasks")
    p_list.add_argument("--limit", type=int, help="Limit number of tasks shown (client-side)")
    p_list.set_defaults(func=cmd_list)

    p_get = sub.add_parser("get", help="Show one task")
    p_get.add_argument("id")
    p_get.set_defaults(func=cmd_get)

    p_logs = sub.add_parser("logs", help="Show recent action logs")
    p_logs.add_argument("--limit", type=int, default=20, help="How many log entries to show")
    p_logs.set_defaults(func=cmd_logs)

    p_create = sub.add_parser("create", help="Create a task")
    p_create.add_argument("description")
    p_create.add_argument("--completed", action="store_true")
    p_create.set_defaults(func=cmd_create)

    p_update = sub.add_parser("update", help="Replace a task's description and completed flag")
    p_update.add_argument("id")
    p_update.add_argument("description")
    p_update.add_argument("--completed", action="store_true")
    p_update.set_defaults(func=cmd_update)

    p_complete = sub.add_parser("complete", help="Mark a task complete")
    p_complete.add_argument("id")
    p_complete.set_defaults(func=cmd_complete)

    p_delete = sub.add_parser("delete", help="Delete a task")
    p_delete.add_argument("id")
    p_delete.set_defaults(func=cmd_delete)

    p_rand = sub.add_parser("random", help="Create random tasks from presets")
    p_rand.add_argument("--count", type=int, default=3, help="How many tasks to create")
    p_rand.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    p_rand.set_defaults(func=cmd_random)

    p_tests = sub.add_parser("tests", help="Run deterministic API check suite and log results")
    p_tests.add_argument("--logfile", default="test_results.log", help="Where to store check results (JSONL)")
    p_tests.set_defaults(func=cmd_tests)

    p_fuzz = sub.add_parser("fuzz", help="Run fuzz tester with logging")
    p_fuzz.add_argument("--steps", type=int, default=30, help="How many random actions to run")
    p_fuzz.add_argument("--seed", type=int, default=None, help="Random seed (optional)")
    p_fuzz.add_argument("--logfile", default="fuzz_results.log", help="Where to store fuzz results (JSONL)")
    p_fuzz.set_defaults(func=cmd_fuzz_run)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
