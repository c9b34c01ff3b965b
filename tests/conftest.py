"""
Shared test configuration and fixtures.

Provides a fresh storage root per test plus helpers to seed schema state
and session log content directly on disk, the way a previous process
(or a crash) would have left them.
"""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from machina_storage import StoragePaths


def state_document(
    schema_version: int,
    status: str = "ready",
    backup_path: str | None = None,
) -> dict[str, Any]:
    migrating = status == "migrating"
    return {
        "schemaVersion": schema_version,
        "status": status,
        "targetVersion": schema_version + 1 if migrating else None,
        "migrationId": f"v{schema_version}-to-v{schema_version + 1}" if migrating else None,
        "backupPath": backup_path,
        "updatedAt": "2026-02-11T00:00:00.000Z",
    }


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    """Storage root that does not exist yet."""
    return tmp_path / "storage"


@pytest.fixture
def paths(storage_dir: Path) -> StoragePaths:
    storage_dir.mkdir(parents=True, exist_ok=True)
    return StoragePaths.for_root(storage_dir)


@pytest.fixture
def seed_state(paths: StoragePaths) -> Callable[..., dict[str, Any]]:
    """Write a schema state file as a previous run would have."""

    def _seed(schema_version: int, status: str = "ready", backup_path: str | None = None):
        document = state_document(schema_version, status, backup_path)
        paths.schema_state_file.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        return document

    return _seed


@pytest.fixture
def seed_log(paths: StoragePaths) -> Callable[[list[dict[str, Any]]], str]:
    """Write raw record dicts to the session log, one per line."""

    def _seed(records: list[dict[str, Any]]) -> str:
        content = "".join(json.dumps(record) + "\n" for record in records)
        paths.sessions_file.write_text(content, encoding="utf-8")
        return content

    return _seed


def read_log(paths: StoragePaths) -> list[dict[str, Any]]:
    """Parse the session log on disk."""
    text = paths.sessions_file.read_text(encoding="utf-8")
    return [json.loads(line) for line in text.splitlines() if line.strip()]


@pytest.fixture
def log_lines() -> Callable[[StoragePaths], list[dict[str, Any]]]:
    return read_log


@pytest.fixture
def read_state(paths: StoragePaths) -> Callable[[], dict[str, Any]]:
    def _read() -> dict[str, Any]:
        return json.loads(paths.schema_state_file.read_text(encoding="utf-8"))

    return _read
