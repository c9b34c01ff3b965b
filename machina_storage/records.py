"""
Session record model and content checksums.

A session record is one JSON object per line in the session log:

    {"id": "...", "updatedAt": "...", "payload": ..., "deleted": true, "checksum": "..."}

``deleted`` and ``checksum`` are optional. From schema v2 on, every record
carries a SHA-256 checksum over a canonical serialization of its content.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

CURRENT_SCHEMA_VERSION = 2

# First schema version whose records must carry a checksum
CHECKSUM_SCHEMA_VERSION = 2

EPOCH_TIMESTAMP = "1970-01-01T00:00:00.000Z"


def utc_timestamp(moment: datetime | None = None) -> str:
    """Format a moment as ISO-8601 UTC with millisecond precision and ``Z``."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def canonical_json(value: Any) -> str:
    """Serialize with sorted keys and no insignificant whitespace."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def compute_checksum(record_id: str, updated_at: str, payload: Any, deleted: bool) -> str:
    """Content hash over the canonical form of a record's fields."""
    canonical = canonical_json(
        {
            "id": record_id,
            "updatedAt": updated_at,
            "payload": payload,
            "deleted": bool(deleted),
        }
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass
class SessionRecord:
    """A single session log entry."""

    id: str
    updated_at: str
    payload: Any = None
    deleted: bool | None = None
    checksum: str | None = None

    @property
    def is_tombstone(self) -> bool:
        return self.deleted is True

    def expected_checksum(self) -> str:
        return compute_checksum(self.id, self.updated_at, self.payload, bool(self.deleted))

    def normalized(self, schema_version: int) -> SessionRecord:
        """Rebuild the record for a schema, recomputing the checksum when required."""
        record = SessionRecord(
            id=self.id,
            updated_at=self.updated_at,
            payload=self.payload,
            deleted=self.deleted,
        )
        if schema_version >= CHECKSUM_SCHEMA_VERSION:
            record.checksum = record.expected_checksum()
        return record

    @classmethod
    def from_dict(cls, data: Any) -> SessionRecord:
        """Build a record from a parsed log line.

        Raises:
            ValueError: If the line is not an object or lacks string
                ``id`` / ``updatedAt`` fields
        """
        if not isinstance(data, dict):
            raise ValueError("record must be a JSON object")
        if not isinstance(data.get("id"), str) or not isinstance(data.get("updatedAt"), str):
            raise ValueError("missing required fields")

        # Any truthy flag marks a tombstone
        deleted = data.get("deleted")
        checksum = data.get("checksum")
        return cls(
            id=data["id"],
            updated_at=data["updatedAt"],
            payload=data.get("payload"),
            deleted=None if deleted is None else bool(deleted),
            checksum=checksum if isinstance(checksum, str) else None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk dictionary shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "updatedAt": self.updated_at,
            "payload": self.payload,
        }
        if self.deleted is not None:
            data["deleted"] = self.deleted
        if self.checksum is not None:
            data["checksum"] = self.checksum
        return data
