"""
Operation id allocation.

Callers that need stable, human-readable ids for storage operations get
them from an explicitly passed ``OperationSequence`` instead of module
level counters.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from threading import Lock

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9]+")


@dataclass
class OperationSequence:
    """Allocates per-name sequential operation ids.

    Example:
        seq = OperationSequence()
        seq.next_id("storage.migrate")  → "op-storage-migrate-0001"
        seq.next_id("storage.migrate")  → "op-storage-migrate-0002"
        seq.next_id("storage.compact")  → "op-storage-compact-0001"
    """

    prefix: str = "op"
    _counters: dict[str, int] = field(default_factory=dict)
    _lock: Lock = field(default_factory=Lock)

    def next_id(self, name: str) -> str:
        """Generate the next id for ``name``. Thread-safe."""
        with self._lock:
            current = self._counters.get(name, 0) + 1
            self._counters[name] = current

        safe_name = _UNSAFE_CHARS.sub("-", name)
        return f"{self.prefix}-{safe_name}-{current:04d}"

    def count(self, name: str) -> int:
        """Number of ids handed out for ``name`` so far."""
        return self._counters.get(name, 0)
