"""
Crash-safe schema migration engine.

Each step follows a backup-then-transform-then-promote protocol:

1. Write ``migrating(v -> v+1)`` to the schema state (durability barrier)
2. Copy the session log verbatim to the backup file (pre-image)
3. Transform the log and replace it atomically
4. Write ``ready(v+1)`` and delete the backup

If the process dies anywhere after step 1, the next ``run()`` finds the
``migrating`` marker and recovers before doing anything else: from the
backup when it exists, otherwise from the current log provided it still
parses. Only one step is ever in flight.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ..exceptions import (
    MigrationDowngradeBlockedError,
    MigrationFailedError,
    MigrationInterruptedError,
    MigrationPathMissingError,
    MigrationRecoveryError,
    MigrationTargetUnsupportedError,
    SessionParseError,
)
from ..local.file_ops import copy_file_atomic, file_exists, remove_file, write_text_atomic
from ..paths import StoragePaths
from ..records import CURRENT_SCHEMA_VERSION
from ..schema_state import SchemaState, SchemaStateStore, migration_id_for
from ..session_log import read_session_records, write_sessions_atomic
from .registry import MIGRATIONS
from .types import MigrationResult, MigrationRunStatus, Transform

logger = logging.getLogger(__name__)

RECOVERY_INVALID_DATA_MESSAGE = (
    "Interrupted migration cannot recover without backup because session data is invalid"
)


class MigrationEngine:
    """Applies registered single-version transforms to one storage root.

    The engine never retries on its own. A failed step leaves the schema
    state at ``migrating``; calling ``run()`` again recovers and redoes it.
    """

    def __init__(
        self,
        paths: StoragePaths,
        registry: dict[str, Transform] | None = None,
        current_version: int = CURRENT_SCHEMA_VERSION,
    ) -> None:
        """Initialize the engine.

        Args:
            paths: Storage file locations
            registry: Transforms keyed by migration id (defaults to MIGRATIONS)
            current_version: Highest schema version this engine supports
        """
        self.paths = paths
        self.registry = MIGRATIONS if registry is None else registry
        self.current_version = current_version
        self.state_store = SchemaStateStore(paths, current_version)

    async def run(
        self,
        target_version: int | None = None,
        *,
        interrupt_after_state_write: bool = False,
    ) -> MigrationResult:
        """Bring the stored schema up to ``target_version``.

        Args:
            target_version: Version to reach (defaults to the current version)
            interrupt_after_state_write: Fail each step right after its
                durability barrier and backup, simulating a crash

        Returns:
            Migration result

        Raises:
            MigrationRecoveryError: An interrupted step cannot be resolved safely
            MigrationTargetUnsupportedError: Target outside ``[1, current_version]``
            MigrationDowngradeBlockedError: Stored schema is newer than the target
            MigrationPathMissingError: No transform registered for a required step
            MigrationFailedError: A step failed after its durability barrier
        """
        await self.state_store.initialize_if_missing()
        state = await self.state_store.read()

        recovered = False
        if state.is_migrating:
            state = await self.recover(state)
            recovered = True

        target = self.current_version if target_version is None else target_version
        if target < 1 or target > self.current_version:
            raise MigrationTargetUnsupportedError(target, self.current_version)
        if state.schema_version > target:
            raise MigrationDowngradeBlockedError(state.schema_version, target)

        from_version = state.schema_version
        applied: list[str] = []

        for version in range(from_version, target):
            migration_id = migration_id_for(version)
            transform = self.registry.get(migration_id)
            if transform is None:
                raise MigrationPathMissingError(migration_id)

            await self._apply_step(version, migration_id, transform, interrupt_after_state_write)
            applied.append(migration_id)

        if not applied:
            return MigrationResult(
                status=MigrationRunStatus.UP_TO_DATE,
                from_version=from_version,
                to_version=from_version,
                recovered=recovered,
            )

        return MigrationResult(
            status=MigrationRunStatus.MIGRATED,
            from_version=from_version,
            to_version=target,
            recovered=recovered,
            applied=applied,
        )

    async def recover(self, state: SchemaState) -> SchemaState:
        """Resolve an interrupted step back to a READY state.

        Args:
            state: The ``migrating`` state found on disk

        Returns:
            The READY state now on disk
        """
        backup = Path(state.backup_path) if state.backup_path else None

        if backup is not None and await file_exists(backup):
            await copy_file_atomic(backup, self.paths.sessions_file)
            ready = SchemaState.ready(state.schema_version)
            await self.state_store.write(ready)
            await remove_file(backup)
            logger.info(
                "Restored session log from backup after interrupted %s",
                state.migration_id,
                extra={"migration_id": state.migration_id},
            )
            return ready

        # No pre-image: the step died before the copy finished. The log is
        # only trusted if it still parses.
        try:
            await read_session_records(self.paths.sessions_file)
        except SessionParseError as e:
            raise MigrationRecoveryError(RECOVERY_INVALID_DATA_MESSAGE, state.migration_id) from e

        ready = SchemaState.ready(state.schema_version)
        await self.state_store.write(ready)
        logger.info(
            "Reset interrupted %s without backup; session log still parses",
            state.migration_id,
            extra={"migration_id": state.migration_id},
        )
        return ready

    async def _apply_step(
        self,
        version: int,
        migration_id: str,
        transform: Transform,
        interrupt_after_state_write: bool,
    ) -> None:
        logger.info("Applying %s", migration_id, extra={"migration_id": migration_id})
        await self.state_store.write(SchemaState.migrating(version, self.paths.backup_file))

        try:
            await self._backup_sessions()
            if interrupt_after_state_write:
                raise MigrationInterruptedError(migration_id)

            records = await read_session_records(self.paths.sessions_file)
            await write_sessions_atomic(self.paths.sessions_file, transform(records))
        except Exception as e:
            raise MigrationFailedError(migration_id, e) from e

        await self.state_store.write(SchemaState.ready(version + 1))
        await remove_file(self.paths.backup_file)
        logger.info("Applied %s", migration_id, extra={"migration_id": migration_id})

    async def _backup_sessions(self) -> None:
        if await file_exists(self.paths.sessions_file):
            await copy_file_atomic(self.paths.sessions_file, self.paths.backup_file)
        else:
            await write_text_atomic(self.paths.backup_file, "")
