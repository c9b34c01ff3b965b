"""
Storage root resolution.

Resolution order: explicit directory > ``MACHINA_STORAGE_DIR`` >
``<home>/.machina/storage``. Everything here is a pure function of its
inputs; nothing touches the filesystem.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from .exceptions import StorageHomeMissingError

STORAGE_DIR_ENV = "MACHINA_STORAGE_DIR"

SESSION_FILE = "sessions.jsonl"
STATE_FILE = "schema-state.json"
BACKUP_FILE = "sessions.backup.jsonl"


class StorageSource(Enum):
    """Where the storage root came from."""

    EXPLICIT = "explicit"
    ENV = "env"
    DEFAULT = "default"


@dataclass(frozen=True)
class StoragePolicy:
    """Resolved storage root and its origin."""

    source: StorageSource
    root_dir: Path


@dataclass(frozen=True)
class StoragePaths:
    """Fixed file locations beneath a storage root."""

    root_dir: Path
    sessions_file: Path
    schema_state_file: Path
    backup_file: Path

    @classmethod
    def for_root(cls, root_dir: Path | str) -> StoragePaths:
        root = Path(root_dir)
        return cls(
            root_dir=root,
            sessions_file=root / SESSION_FILE,
            schema_state_file=root / STATE_FILE,
            backup_file=root / BACKUP_FILE,
        )


def _non_blank(value: str | os.PathLike | None) -> bool:
    return value is not None and str(value).strip() != ""


def resolve_storage_policy(
    explicit_dir: str | os.PathLike | None = None,
    env: Mapping[str, str] | None = None,
) -> StoragePolicy:
    """Decide which storage root to use.

    Args:
        explicit_dir: Caller-supplied root, used when non-blank
        env: Environment mapping (defaults to ``os.environ``)

    Returns:
        The resolved policy

    Raises:
        StorageHomeMissingError: If no override is given and neither HOME
            nor USERPROFILE is set
    """
    if env is None:
        env = os.environ

    if _non_blank(explicit_dir):
        return StoragePolicy(StorageSource.EXPLICIT, Path(explicit_dir))

    from_env = env.get(STORAGE_DIR_ENV)
    if _non_blank(from_env):
        return StoragePolicy(StorageSource.ENV, Path(from_env))

    home = env.get("HOME") or env.get("USERPROFILE")
    if not home:
        raise StorageHomeMissingError()

    return StoragePolicy(StorageSource.DEFAULT, Path(home) / ".machina" / "storage")


def get_storage_paths(
    explicit_dir: str | os.PathLike | None = None,
    env: Mapping[str, str] | None = None,
) -> StoragePaths:
    """Resolve the storage root and derive the file paths beneath it."""
    policy = resolve_storage_policy(explicit_dir, env)
    return StoragePaths.for_root(policy.root_dir)
