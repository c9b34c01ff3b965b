"""Tests for low-level file operations."""

import tempfile
from pathlib import Path

import pytest

from machina_storage import StorageIOError
from machina_storage.local import (
    copy_file_atomic,
    ensure_directory,
    file_exists,
    read_text,
    remove_file,
    write_json_atomic,
    write_text_atomic,
)


class TestAtomicWrites:
    """Tests for temp-file-then-rename writes."""

    async def test_write_creates_parent(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "file.txt"
        await write_text_atomic(target, "hello\n")
        assert target.read_text() == "hello\n"

    async def test_write_replaces_and_leaves_no_temp(self, tmp_path: Path) -> None:
        target = tmp_path / "file.txt"
        target.write_text("old")
        await write_text_atomic(target, "new")
        assert target.read_text() == "new"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    async def test_write_json_is_pretty(self, tmp_path: Path) -> None:
        target = tmp_path / "state.json"
        await write_json_atomic(target, {"a": 1})
        assert target.read_text() == '{\n  "a": 1\n}\n'

    async def test_write_failure_wraps_error(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(StorageIOError) as exc_info:
            await write_text_atomic(blocker / "child.txt", "x")
        assert exc_info.value.code == "STORAGE_IO_FAILED"

    async def test_temp_file_failure_wraps_error(self, tmp_path: Path, monkeypatch) -> None:
        def refuse(*args, **kwargs):
            raise PermissionError("read-only directory")

        monkeypatch.setattr(tempfile, "mkstemp", refuse)
        with pytest.raises(StorageIOError) as exc_info:
            await write_text_atomic(tmp_path / "file.txt", "x")
        assert isinstance(exc_info.value.__cause__, PermissionError)
        assert list(tmp_path.iterdir()) == []


class TestCopyAndRemove:
    """Tests for byte-for-byte copies and removal."""

    async def test_copy_is_verbatim(self, tmp_path: Path) -> None:
        source = tmp_path / "src.jsonl"
        source.write_bytes(b'{"id":"a"}\r\n\r\n{"id":"b"}\xff\xfe')
        destination = tmp_path / "dst.jsonl"
        await copy_file_atomic(source, destination)
        assert destination.read_bytes() == source.read_bytes()
        assert sorted(p.name for p in tmp_path.iterdir()) == ["dst.jsonl", "src.jsonl"]

    async def test_copy_missing_source_wraps_error(self, tmp_path: Path) -> None:
        with pytest.raises(StorageIOError):
            await copy_file_atomic(tmp_path / "missing", tmp_path / "dst")
        assert list(tmp_path.iterdir()) == []

    async def test_remove_missing_returns_false(self, tmp_path: Path) -> None:
        assert await remove_file(tmp_path / "nope") is False

    async def test_remove_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "f"
        target.write_text("x")
        assert await remove_file(target) is True
        assert not target.exists()

    async def test_file_exists_ignores_directories(self, tmp_path: Path) -> None:
        await ensure_directory(tmp_path / "dir")
        assert await file_exists(tmp_path / "dir") is False

    async def test_read_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(StorageIOError):
            await read_text(tmp_path / "missing")
