"""
Session log compaction.

Collapses duplicate ids to their last physical occurrence, drops
tombstones, and renormalizes survivors for the stored schema.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .paths import StoragePaths
from .records import SessionRecord
from .schema_state import SchemaStateStore
from .session_log import read_session_records, write_sessions_atomic

logger = logging.getLogger(__name__)


@dataclass
class CompactionReport:
    """Record counts before and after compaction."""

    before: int
    after: int

    @property
    def removed(self) -> int:
        return self.before - self.after

    def to_dict(self) -> dict[str, Any]:
        return {"before": self.before, "after": self.after, "removed": self.removed}


def compact_records(records: list[SessionRecord], schema_version: int) -> list[SessionRecord]:
    """Last-write-wins dedup by id, minus tombstones, normalized for the schema.

    Survivors keep the position where their id first appeared.
    """
    latest: dict[str, SessionRecord] = {}
    for record in records:
        latest[record.id] = record

    return [
        record.normalized(schema_version)
        for record in latest.values()
        if not record.is_tombstone
    ]


async def compact(paths: StoragePaths) -> CompactionReport:
    """Compact the session log of an initialized storage root."""
    state = await SchemaStateStore(paths).read()
    records = await read_session_records(paths.sessions_file)

    compacted = compact_records(records, state.schema_version)
    await write_sessions_atomic(paths.sessions_file, compacted)

    report = CompactionReport(before=len(records), after=len(compacted))
    logger.info(
        "Compacted session log: %d -> %d records",
        report.before,
        report.after,
        extra={"removed": report.removed},
    )
    return report
