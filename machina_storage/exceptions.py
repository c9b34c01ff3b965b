"""
Custom exceptions for machina storage.

Every error raised by the storage core carries a stable string ``code``
so callers (CLI commands, workflow harnesses) can branch on it without
parsing messages.
"""


class MachinaStorageError(Exception):
    """Base exception for all machina storage errors."""

    code = "STORAGE_ERROR"

    def __init__(self, message: str, details: dict | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code

    def to_dict(self) -> dict:
        """Serialize to dictionary."""
        return {"code": self.code, "message": self.message, "details": self.details}


class StorageHomeMissingError(MachinaStorageError):
    """Raised when no storage root can be derived from the environment."""

    code = "STORAGE_HOME_MISSING"

    def __init__(self) -> None:
        super().__init__("Unable to resolve default storage directory without HOME")


class ConfigError(MachinaStorageError):
    """Raised when a configuration file cannot be loaded."""

    code = "CONFIG_INVALID"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Invalid configuration in {path}: {reason}", {"path": path, "reason": reason})
        self.path = path
        self.reason = reason


class SchemaStateInvalidError(MachinaStorageError):
    """Raised when the schema state file is structurally invalid."""

    code = "SCHEMA_STATE_INVALID"

    def __init__(self, reason: str, path: str | None = None):
        details = {"reason": reason}
        if path:
            details["path"] = path
        super().__init__(reason, details)
        self.reason = reason
        self.path = path


class SessionParseError(MachinaStorageError):
    """Raised when a session log line cannot be parsed."""

    code = "SESSION_PARSE_FAILED"

    def __init__(self, line: int, reason: str):
        super().__init__(
            f"Failed to parse session record at line {line}: {reason}",
            {"line": line, "reason": reason},
        )
        self.line = line
        self.reason = reason


class MigrationTargetUnsupportedError(MachinaStorageError):
    """Raised when the requested schema version is not supported."""

    code = "MIGRATION_TARGET_UNSUPPORTED"

    def __init__(self, target_version: int, current_version: int):
        super().__init__(
            f"Unsupported schema target version: {target_version}",
            {"target_version": target_version, "max_version": current_version},
        )
        self.target_version = target_version


class MigrationDowngradeBlockedError(MachinaStorageError):
    """Raised when the stored schema is already newer than the target."""

    code = "MIGRATION_DOWNGRADE_BLOCKED"

    def __init__(self, schema_version: int, target_version: int):
        super().__init__(
            f"Downgrade is not supported: {schema_version} -> {target_version}",
            {"schema_version": schema_version, "target_version": target_version},
        )
        self.schema_version = schema_version
        self.target_version = target_version


class MigrationPathMissingError(MachinaStorageError):
    """Raised when no transform is registered for a required step."""

    code = "MIGRATION_PATH_MISSING"

    def __init__(self, migration_id: str):
        super().__init__(f"No migration registered for {migration_id}", {"migration_id": migration_id})
        self.migration_id = migration_id


class MigrationInterruptedError(MachinaStorageError):
    """Raised by the failure-injection switch to simulate a crash mid-step."""

    code = "MIGRATION_INTERRUPTED"

    def __init__(self, migration_id: str):
        super().__init__(
            f"Simulated interruption after migration state write for {migration_id}",
            {"migration_id": migration_id},
        )
        self.migration_id = migration_id


class MigrationFailedError(MachinaStorageError):
    """Raised when a step fails after the durability barrier.

    The schema state is left at ``migrating``; the next run recovers it.
    """

    code = "MIGRATION_FAILED"

    def __init__(self, migration_id: str, cause: Exception | None = None):
        details = {"migration_id": migration_id}
        message = f"Migration {migration_id} failed"
        if cause:
            details["cause"] = str(cause)
            message += f": {cause}"
        super().__init__(message, details)
        self.migration_id = migration_id
        self.cause = cause


class MigrationRecoveryError(MachinaStorageError):
    """Raised when an interrupted migration cannot be resumed safely."""

    code = "MIGRATION_RECOVERY_FAILED"

    def __init__(self, message: str, migration_id: str | None = None):
        details = {}
        if migration_id:
            details["migration_id"] = migration_id
        super().__init__(message, details)
        self.migration_id = migration_id


class StorageIOError(MachinaStorageError):
    """Raised when a storage I/O operation fails."""

    code = "STORAGE_IO_FAILED"

    def __init__(self, operation: str, path: str | None = None, cause: Exception | None = None):
        details = {"operation": operation}
        if path:
            details["path"] = path
        if cause:
            details["cause"] = str(cause)
        message = f"Storage I/O error during {operation}"
        if path:
            message += f": {path}"
        super().__init__(message, details)
        self.operation = operation
        self.path = path
        self.cause = cause
