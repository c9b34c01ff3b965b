"""
Schema migration for the session log.

Provides the crash-safe single-step migration engine and the registry of
per-version transforms.
"""

from .engine import MigrationEngine
from .registry import MIGRATIONS
from .types import MigrationResult, MigrationRunStatus, Transform

__all__ = [
    "MIGRATIONS",
    "MigrationEngine",
    "MigrationResult",
    "MigrationRunStatus",
    "Transform",
]
