"""
Read-only integrity check over the session log.

Every physical line is validated on its own; duplicates and tombstones
are not collapsed here. Line numbers are 1-indexed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .paths import StoragePaths
from .records import CHECKSUM_SCHEMA_VERSION, SessionRecord
from .schema_state import SchemaStateStore
from .session_log import read_session_records


@dataclass
class IntegrityIssue:
    """A single problem found on one log line."""

    code: str
    message: str
    line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "line": self.line}


@dataclass
class IntegrityReport:
    """Outcome of an integrity check."""

    schema_version: int
    issues: list[IntegrityIssue] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return not self.issues

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "healthy": self.healthy,
            "schema_version": self.schema_version,
            "issue_count": self.issue_count,
            "issues": [issue.to_dict() for issue in self.issues],
        }


def check_records(records: list[SessionRecord], schema_version: int) -> list[IntegrityIssue]:
    """Validate records as they would be stored under ``schema_version``."""
    issues: list[IntegrityIssue] = []

    for line, record in enumerate(records, start=1):
        if not record.id.strip():
            issues.append(IntegrityIssue("SESSION_ID_EMPTY", "Session id must not be empty", line))

        if not record.updated_at.strip():
            issues.append(
                IntegrityIssue("SESSION_UPDATED_AT_EMPTY", "Session updatedAt must not be empty", line)
            )

        if schema_version >= CHECKSUM_SCHEMA_VERSION:
            if not record.checksum:
                issues.append(
                    IntegrityIssue("CHECKSUM_MISSING", "Checksum is required for schema v2+", line)
                )
            elif record.checksum != record.expected_checksum():
                issues.append(IntegrityIssue("CHECKSUM_INVALID", "Checksum validation failed", line))

    return issues


async def check_integrity(paths: StoragePaths) -> IntegrityReport:
    """Check every record in an initialized storage root. Never writes."""
    state = await SchemaStateStore(paths).read()
    records = await read_session_records(paths.sessions_file)
    return IntegrityReport(
        schema_version=state.schema_version,
        issues=check_records(records, state.schema_version),
    )
