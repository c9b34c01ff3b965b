"""
Registered schema transforms.

Each entry upgrades the whole session log by exactly one schema version.
Adding a schema version means adding one entry here; the engine loop
never changes.
"""

from __future__ import annotations

from ..records import SessionRecord
from .types import Transform


def _v1_to_v2(records: list[SessionRecord]) -> list[SessionRecord]:
    """Attach a content checksum to every record."""
    return [record.normalized(2) for record in records]


MIGRATIONS: dict[str, Transform] = {
    "v1-to-v2": _v1_to_v2,
}
