"""Tests for storage root resolution."""

from pathlib import Path

import pytest

from machina_storage import (
    StorageHomeMissingError,
    StorageSource,
    get_storage_paths,
    resolve_storage_policy,
)


class TestResolveStoragePolicy:
    """Tests for resolve_storage_policy precedence."""

    def test_explicit_wins(self) -> None:
        """An explicit directory beats the environment."""
        policy = resolve_storage_policy("/data/explicit", {"MACHINA_STORAGE_DIR": "/data/env", "HOME": "/home/u"})
        assert policy.source == StorageSource.EXPLICIT
        assert policy.root_dir == Path("/data/explicit")

    def test_env_used_when_no_explicit(self) -> None:
        """MACHINA_STORAGE_DIR is used when no explicit directory is given."""
        policy = resolve_storage_policy(None, {"MACHINA_STORAGE_DIR": "/data/env", "HOME": "/home/u"})
        assert policy.source == StorageSource.ENV
        assert policy.root_dir == Path("/data/env")

    def test_blank_values_are_ignored(self) -> None:
        """Whitespace-only overrides fall through to the next source."""
        policy = resolve_storage_policy("   ", {"MACHINA_STORAGE_DIR": "  ", "HOME": "/home/u"})
        assert policy.source == StorageSource.DEFAULT
        assert policy.root_dir == Path("/home/u") / ".machina" / "storage"

    def test_userprofile_fallback(self) -> None:
        """USERPROFILE is used when HOME is absent."""
        policy = resolve_storage_policy(None, {"USERPROFILE": "/users/u"})
        assert policy.root_dir == Path("/users/u") / ".machina" / "storage"

    def test_home_missing(self) -> None:
        """No override and no home directory is an error."""
        with pytest.raises(StorageHomeMissingError) as exc_info:
            resolve_storage_policy(None, {})
        assert exc_info.value.code == "STORAGE_HOME_MISSING"

    def test_explicit_without_home(self) -> None:
        """An explicit directory needs no home directory."""
        policy = resolve_storage_policy("/data/explicit", {})
        assert policy.source == StorageSource.EXPLICIT


class TestGetStoragePaths:
    """Tests for derived file paths."""

    def test_fixed_file_names(self, tmp_path: Path) -> None:
        """The three files live directly under the root."""
        paths = get_storage_paths(tmp_path, {})
        assert paths.root_dir == tmp_path
        assert paths.sessions_file == tmp_path / "sessions.jsonl"
        assert paths.schema_state_file == tmp_path / "schema-state.json"
        assert paths.backup_file == tmp_path / "sessions.backup.jsonl"

    def test_no_io(self, tmp_path: Path) -> None:
        """Resolving paths does not create anything."""
        root = tmp_path / "not-created"
        get_storage_paths(root, {})
        assert not root.exists()
