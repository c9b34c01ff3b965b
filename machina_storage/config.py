"""
Configuration for machina storage front ends.

Configuration can be provided directly, via environment variables, or via
a YAML settings file:

```yaml
storage:
  dir: "/var/lib/machina/storage"
  target_version: 2
  log_level: "DEBUG"
```

Environment Variables:
    MACHINA_STORAGE_DIR: Storage root override
    MACHINA_TARGET_VERSION: Schema version for ``storage migrate``
    MACHINA_LOG_LEVEL: Logging level name (default: INFO)
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ConfigError
from .paths import STORAGE_DIR_ENV

TARGET_VERSION_ENV = "MACHINA_TARGET_VERSION"
LOG_LEVEL_ENV = "MACHINA_LOG_LEVEL"


@dataclass
class StorageConfig:
    """Settings consumed by the CLI and other callers of the storage core.

    Attributes:
        storage_dir: Storage root override (None defers to path resolution)
        target_version: Schema version to migrate to (None means current)
        log_level: Logging level name
    """

    storage_dir: str | None = None
    target_version: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_environment(cls, env: Mapping[str, str] | None = None) -> StorageConfig:
        """Create configuration from environment variables."""
        if env is None:
            env = os.environ

        target = env.get(TARGET_VERSION_ENV, "").strip()
        try:
            target_version = int(target) if target else None
        except ValueError:
            target_version = None

        return cls(
            storage_dir=env.get(STORAGE_DIR_ENV) or None,
            target_version=target_version,
            log_level=env.get(LOG_LEVEL_ENV, "INFO").upper() or "INFO",
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> StorageConfig:
        """Load the ``storage`` section of a YAML settings file.

        A missing file yields defaults.

        Raises:
            ConfigError: If the file cannot be read, is not valid YAML, or has
                the wrong shape
        """
        path = Path(path)
        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(str(path), str(e)) from e
        except OSError as e:
            raise ConfigError(str(path), f"cannot read file: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(str(path), "top level must be a mapping")

        section = data.get("storage") or {}
        if not isinstance(section, dict):
            raise ConfigError(str(path), "'storage' must be a mapping")

        target = section.get("target_version")
        if target is not None and (not isinstance(target, int) or isinstance(target, bool)):
            raise ConfigError(str(path), "'storage.target_version' must be an integer")

        storage_dir = section.get("dir")
        return cls(
            storage_dir=str(storage_dir) if storage_dir else None,
            target_version=target,
            log_level=str(section.get("log_level", "INFO")).upper(),
        )

    def merged_over(self, base: StorageConfig) -> StorageConfig:
        """Overlay the non-default fields of this config onto ``base``."""
        defaults = StorageConfig()
        overrides: dict[str, Any] = {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) != getattr(defaults, f.name)
        }
        return replace(base, **overrides)
