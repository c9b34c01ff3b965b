"""
Machina Storage

Crash-safe local persistence for session records under a versioned schema.

Provides:
- Storage root resolution (explicit > MACHINA_STORAGE_DIR > ~/.machina/storage)
- Single-step schema migrations with backup-based crash recovery
- Content checksum integrity checks
- Last-write-wins compaction with tombstone removal

Usage:

    >>> from machina_storage import run_migrations, check_session_integrity
    >>> result = await run_migrations("/tmp/machina")
    >>> result.applied
    ['v1-to-v2']
    >>> report = await check_session_integrity("/tmp/machina")
    >>> report.healthy
    True
"""

from .api import (
    check_session_integrity,
    compact_sessions,
    ensure_storage_initialized,
    run_migrations,
    write_session_records,
)
from .compaction import CompactionReport
from .config import StorageConfig

# Exceptions
from .exceptions import (
    ConfigError,
    MachinaStorageError,
    MigrationDowngradeBlockedError,
    MigrationFailedError,
    MigrationInterruptedError,
    MigrationPathMissingError,
    MigrationRecoveryError,
    MigrationTargetUnsupportedError,
    SchemaStateInvalidError,
    SessionParseError,
    StorageHomeMissingError,
    StorageIOError,
)
from .integrity import IntegrityIssue, IntegrityReport
from .migration import MIGRATIONS, MigrationEngine, MigrationResult, MigrationRunStatus
from .paths import StoragePaths, StoragePolicy, StorageSource, get_storage_paths, resolve_storage_policy
from .records import CURRENT_SCHEMA_VERSION, SessionRecord, compute_checksum
from .schema_state import SchemaState, SchemaStateStore, SchemaStatus, read_schema_state
from .sequence import OperationSequence
from .session_log import read_session_records

__all__ = [
    # Entry points
    "ensure_storage_initialized",
    "run_migrations",
    "check_session_integrity",
    "compact_sessions",
    "write_session_records",
    "read_session_records",
    "read_schema_state",
    # Paths
    "StoragePaths",
    "StoragePolicy",
    "StorageSource",
    "get_storage_paths",
    "resolve_storage_policy",
    # Model
    "CURRENT_SCHEMA_VERSION",
    "SessionRecord",
    "compute_checksum",
    "SchemaState",
    "SchemaStateStore",
    "SchemaStatus",
    # Migration
    "MIGRATIONS",
    "MigrationEngine",
    "MigrationResult",
    "MigrationRunStatus",
    # Reports
    "IntegrityIssue",
    "IntegrityReport",
    "CompactionReport",
    # Support
    "StorageConfig",
    "OperationSequence",
    # Exceptions
    "MachinaStorageError",
    "StorageHomeMissingError",
    "ConfigError",
    "SchemaStateInvalidError",
    "SessionParseError",
    "MigrationTargetUnsupportedError",
    "MigrationDowngradeBlockedError",
    "MigrationPathMissingError",
    "MigrationInterruptedError",
    "MigrationFailedError",
    "MigrationRecoveryError",
    "StorageIOError",
]

__version__ = "0.1.0"
