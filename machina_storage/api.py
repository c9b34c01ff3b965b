"""
Entry points used by collaborators of the storage core.

CLI commands, workflow harnesses and session management call these
functions; each resolves the storage root, makes sure it is initialized,
and delegates to the component that owns the operation.
"""

from __future__ import annotations

import os
from collections.abc import Mapping

from .compaction import CompactionReport, compact
from .integrity import IntegrityReport, check_integrity
from .migration import MigrationEngine, MigrationResult
from .paths import StoragePaths, get_storage_paths
from .records import SessionRecord
from .schema_state import SchemaStateStore
from .session_log import write_sessions_atomic

StorageDir = str | os.PathLike | None


async def ensure_storage_initialized(
    storage_dir: StorageDir = None,
    env: Mapping[str, str] | None = None,
) -> StoragePaths:
    """Create the storage root, default schema state and empty log if absent.

    Idempotent.
    """
    paths = get_storage_paths(storage_dir, env)
    await SchemaStateStore(paths).initialize_if_missing()
    return paths


async def run_migrations(
    storage_dir: StorageDir = None,
    target_version: int | None = None,
    *,
    env: Mapping[str, str] | None = None,
    interrupt_after_state_write: bool = False,
) -> MigrationResult:
    """Migrate the stored schema, recovering an interrupted step first."""
    paths = get_storage_paths(storage_dir, env)
    engine = MigrationEngine(paths)
    return await engine.run(target_version, interrupt_after_state_write=interrupt_after_state_write)


async def check_session_integrity(
    storage_dir: StorageDir = None,
    env: Mapping[str, str] | None = None,
) -> IntegrityReport:
    """Validate every record in the session log without modifying it."""
    paths = await ensure_storage_initialized(storage_dir, env)
    return await check_integrity(paths)


async def compact_sessions(
    storage_dir: StorageDir = None,
    env: Mapping[str, str] | None = None,
) -> CompactionReport:
    """Deduplicate the session log and drop tombstones."""
    paths = await ensure_storage_initialized(storage_dir, env)
    return await compact(paths)


async def write_session_records(
    storage_dir: StorageDir,
    records: list[SessionRecord],
    env: Mapping[str, str] | None = None,
) -> None:
    """Replace the session log, normalizing records for the stored schema."""
    paths = await ensure_storage_initialized(storage_dir, env)
    state = await SchemaStateStore(paths).read()
    normalized = [record.normalized(state.schema_version) for record in records]
    await write_sessions_atomic(paths.sessions_file, normalized)
