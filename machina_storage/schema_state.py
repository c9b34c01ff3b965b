"""
Schema state persistence.

The schema state file records the current schema version and, while a
migration step is in flight, which step it is and where its pre-image
lives. It is only ever replaced atomically.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from .exceptions import SchemaStateInvalidError
from .local.file_ops import ensure_directory, file_exists, read_text, write_json_atomic, write_text_atomic
from .paths import StoragePaths
from .records import CURRENT_SCHEMA_VERSION, EPOCH_TIMESTAMP, utc_timestamp

logger = logging.getLogger(__name__)


class SchemaStatus(Enum):
    """Status of the stored schema."""

    READY = "ready"
    MIGRATING = "migrating"


def migration_id_for(version: int) -> str:
    """Identifier of the single step upgrading ``version`` to ``version + 1``."""
    return f"v{version}-to-v{version + 1}"


@dataclass
class SchemaState:
    """Persisted schema version and in-flight migration marker."""

    schema_version: int
    status: SchemaStatus = SchemaStatus.READY
    target_version: int | None = None
    migration_id: str | None = None
    backup_path: str | None = None
    updated_at: str = field(default_factory=utc_timestamp)

    @classmethod
    def ready(cls, version: int) -> SchemaState:
        return cls(schema_version=version, status=SchemaStatus.READY)

    @classmethod
    def migrating(cls, version: int, backup_path: Path | str) -> SchemaState:
        return cls(
            schema_version=version,
            status=SchemaStatus.MIGRATING,
            target_version=version + 1,
            migration_id=migration_id_for(version),
            backup_path=str(backup_path),
        )

    @property
    def is_migrating(self) -> bool:
        return self.status is SchemaStatus.MIGRATING

    @classmethod
    def from_dict(cls, data: Any) -> SchemaState:
        """Validate and build a state from its JSON form.

        Raises:
            SchemaStateInvalidError: If required fields are missing or malformed
        """
        if not isinstance(data, dict):
            raise SchemaStateInvalidError("Schema state must be a JSON object")

        version = data.get("schemaVersion")
        if not isinstance(version, int) or isinstance(version, bool):
            raise SchemaStateInvalidError("Schema state is missing schemaVersion")

        try:
            status = SchemaStatus(data.get("status"))
        except ValueError:
            raise SchemaStateInvalidError("Schema state has invalid status") from None

        return cls(
            schema_version=version,
            status=status,
            target_version=data.get("targetVersion"),
            migration_id=data.get("migrationId"),
            backup_path=data.get("backupPath"),
            updated_at=data.get("updatedAt") or EPOCH_TIMESTAMP,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk dictionary shape."""
        return {
            "schemaVersion": self.schema_version,
            "status": self.status.value,
            "targetVersion": self.target_version,
            "migrationId": self.migration_id,
            "backupPath": self.backup_path,
            "updatedAt": self.updated_at,
        }


class SchemaStateStore:
    """Reads and writes the schema state file for one storage root."""

    def __init__(self, paths: StoragePaths, current_version: int = CURRENT_SCHEMA_VERSION) -> None:
        self.paths = paths
        self.current_version = current_version

    async def read(self) -> SchemaState:
        path = self.paths.schema_state_file
        try:
            data = json.loads(await read_text(path))
        except ValueError as e:
            raise SchemaStateInvalidError(f"Schema state is not valid JSON: {e}", str(path)) from e
        return SchemaState.from_dict(data)

    async def write(self, state: SchemaState) -> None:
        await write_json_atomic(self.paths.schema_state_file, state.to_dict())
        logger.debug(
            "Schema state -> %s v%d",
            state.status.value,
            state.schema_version,
            extra={"migration_id": state.migration_id},
        )

    async def initialize_if_missing(self) -> None:
        """Create the root, a READY state at the current version, and an empty log."""
        await ensure_directory(self.paths.root_dir)

        if not await file_exists(self.paths.schema_state_file):
            await self.write(SchemaState.ready(self.current_version))
            logger.info(
                "Initialized schema state at v%d in %s", self.current_version, self.paths.root_dir
            )

        if not await file_exists(self.paths.sessions_file):
            await write_text_atomic(self.paths.sessions_file, "")


async def read_schema_state(paths: StoragePaths) -> SchemaState:
    """Read the schema state for a storage root."""
    return await SchemaStateStore(paths).read()
