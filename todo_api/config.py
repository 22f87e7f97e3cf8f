"""Server settings: defaults, overridden by TODO_API_* environment variables,
overridden in turn by command line flags."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import List, Optional

ENV_PREFIX = "TODO_API"


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None or v.strip() == "" else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class ServerConfig:
    host: str = "127.0.0.1"
    port: int = 8000
    seed: bool = True
    log_level: str = "INFO"
    action_log_path: Optional[str] = None


def config_from_env() -> ServerConfig:
    defaults = ServerConfig()
    return ServerConfig(
        host=_env(_k("HOST"), defaults.host),
        port=_env_int(_k("PORT"), defaults.port),
        seed=_env_bool(_k("SEED"), defaults.seed),
        log_level=_env(_k("LOG_LEVEL"), defaults.log_level).upper(),
        action_log_path=_env(_k("ACTION_LOG"), "") or None,
    )


def build_parser(base: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Task API HTTP server (in-memory storage)")
    parser.add_argument("--host", default=base.host)
    parser.add_argument("--port", type=int, default=base.port)
    parser.add_argument("--no-seed", dest="seed", action="store_false", default=base.seed,
                        help="Start with an empty store instead of the example tasks")
    parser.add_argument("--log-level", default=base.log_level,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"], type=str.upper)
    parser.add_argument("--action-log", dest="action_log_path", default=base.action_log_path,
                        help="Also append action records to this JSONL file")
    return parser


def load_config(argv: Optional[List[str]] = None) -> ServerConfig:
    base = config_from_env()
    args = build_parser(base).parse_args(argv)
    return ServerConfig(
        host=args.host,
        port=args.port,
        seed=args.seed,
        log_level=args.log_level,
        action_log_path=args.action_log_path,
    )
