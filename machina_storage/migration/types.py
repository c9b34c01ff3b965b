"""
Migration types and data structures.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..records import SessionRecord

# A pure function from the records at schema N to the records at schema N+1
Transform = Callable[[list[SessionRecord]], list[SessionRecord]]


class MigrationRunStatus(Enum):
    """Outcome of a migration run."""

    UP_TO_DATE = "up-to-date"
    MIGRATED = "migrated"


@dataclass
class MigrationResult:
    """Result of a migration run.

    ``recovered`` is True when the run found an interrupted step and
    resolved it before doing anything else.
    """

    status: MigrationRunStatus
    from_version: int
    to_version: int
    recovered: bool = False
    applied: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "status": self.status.value,
            "from_version": self.from_version,
            "to_version": self.to_version,
            "recovered": self.recovered,
            "applied": list(self.applied),
        }
