"""Command line front end for storage maintenance.

Usage:
    machina-storage [--storage-dir DIR] [--config FILE] storage migrate [--target-version N]
    machina-storage storage integrity
    machina-storage storage compact
    machina-storage storage status

Each command prints its result as JSON on stdout. Storage errors are
printed as JSON on stderr with exit code 1; an unhealthy integrity report
exits with code 2.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, TextIO

from .api import check_session_integrity, compact_sessions, ensure_storage_initialized, run_migrations
from .config import StorageConfig
from .exceptions import MachinaStorageError
from .logging_utils import StorageLoggerAdapter, configure_structured_logging, get_storage_logger
from .schema_state import read_schema_state
from .sequence import OperationSequence

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_UNHEALTHY = 2

logger = get_storage_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="machina-storage",
        description="Maintain the machina session store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Storage root precedence:
  --storage-dir > config file storage.dir > MACHINA_STORAGE_DIR > ~/.machina/storage
""",
    )
    parser.add_argument("--storage-dir", help="Override storage root for this invocation")
    parser.add_argument("--config", type=Path, help="YAML settings file with a 'storage' section")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines on stderr")

    groups = parser.add_subparsers(dest="group", required=True)
    storage = groups.add_parser("storage", help="Storage maintenance commands")
    commands = storage.add_subparsers(dest="command", required=True)

    migrate = commands.add_parser("migrate", help="Run schema migrations")
    migrate.add_argument("--target-version", type=int, help="Schema version to migrate to")
    commands.add_parser("integrity", help="Check session records without modifying them")
    commands.add_parser("compact", help="Deduplicate records and drop tombstones")
    commands.add_parser("status", help="Show the schema state")

    return parser


def resolve_config(args: argparse.Namespace, env: Mapping[str, str]) -> StorageConfig:
    """Flags > config file > environment > defaults."""
    config = StorageConfig.from_environment(env)
    if args.config is not None:
        config = StorageConfig.from_yaml(args.config).merged_over(config)

    flags = StorageConfig(
        storage_dir=args.storage_dir,
        target_version=getattr(args, "target_version", None),
        log_level=args.log_level.upper() if args.log_level else "INFO",
    )
    return flags.merged_over(config)


def configure_logging(config: StorageConfig, json_logs: bool, stream: TextIO) -> None:
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO
    if json_logs:
        configure_structured_logging(level, stream=stream)
    else:
        logging.basicConfig(level=level, format="%(levelname)s  %(name)s  %(message)s", stream=stream)


async def execute(command: str, config: StorageConfig, env: Mapping[str, str]) -> dict[str, Any]:
    """Run one storage command and return its JSON-ready result."""
    if command == "migrate":
        result = await run_migrations(config.storage_dir, config.target_version, env=env)
        return result.to_dict()

    if command == "integrity":
        report = await check_session_integrity(config.storage_dir, env)
        return report.to_dict()

    if command == "compact":
        report = await compact_sessions(config.storage_dir, env)
        return report.to_dict()

    if command == "status":
        paths = await ensure_storage_initialized(config.storage_dir, env)
        state = await read_schema_state(paths)
        return {"root_dir": str(paths.root_dir), "state": state.to_dict()}

    raise ValueError(f"Unknown storage command: {command}")


def main(
    argv: Sequence[str] | None = None,
    *,
    env: Mapping[str, str] | None = None,
    sequence: OperationSequence | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """CLI entry point. Returns the process exit code."""
    env = os.environ if env is None else env
    sequence = sequence or OperationSequence()
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    args = build_parser().parse_args(argv)
    workflow = f"{args.group}.{args.command}"
    operation_id = sequence.next_id(workflow)

    try:
        config = resolve_config(args, env)
        configure_logging(config, args.json_logs, stderr)
        log = StorageLoggerAdapter(logger, {"operation_id": operation_id})
        log.info("Running %s", workflow)

        result = asyncio.run(execute(args.command, config, env))
    except MachinaStorageError as e:
        json.dump({"operation_id": operation_id, "error": e.to_dict()}, stderr, indent=2)
        stderr.write("\n")
        return EXIT_ERROR

    json.dump({"operation_id": operation_id, "command": workflow, "result": result}, stdout, indent=2)
    stdout.write("\n")

    if args.command == "integrity" and not result["healthy"]:
        return EXIT_UNHEALTHY
    return EXIT_OK
