"""
Text and JSON file operations for local storage.

Provides async read/write primitives with:
- Atomic writes using temp file + rename
- Byte-for-byte copies for backup snapshots
- OSError wrapping into StorageIOError
"""

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os

from ..exceptions import StorageIOError


async def ensure_directory(path: Path) -> None:
    """Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure exists
    """
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise StorageIOError("create_directory", str(path), e) from e


async def file_exists(path: Path) -> bool:
    """Check if a file exists.

    Args:
        path: Path to check

    Returns:
        True if file exists
    """
    try:
        return await aiofiles.os.path.isfile(path)
    except OSError:
        return False


async def read_bytes(path: Path) -> bytes:
    """Read a file in full without decoding.

    Args:
        path: Path to read

    Returns:
        Raw file content
    """
    try:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
    except OSError as e:
        raise StorageIOError("read", str(path), e) from e


async def read_text(path: Path) -> str:
    """Read a UTF-8 text file in full.

    Args:
        path: Path to read

    Returns:
        File content

    Raises:
        StorageIOError: If the file cannot be read
        UnicodeDecodeError: If the content is not valid UTF-8
    """
    return (await read_bytes(path)).decode("utf-8")


async def write_text_atomic(path: Path, content: str) -> None:
    """Write a text file atomically using temp file + rename.

    Readers observe either the previous content or the new content,
    never a partial write.

    Args:
        path: Target path
        content: Text to write
    """
    await ensure_directory(path.parent)

    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=f".{path.name}.tmp_",
        )
        os.close(fd)
        async with aiofiles.open(temp_path, "w", encoding="utf-8", newline="") as f:
            await f.write(content)
            await f.flush()
            os.fsync(f.fileno())

        await aiofiles.os.replace(temp_path, path)
    except Exception as e:
        await _discard_temp(temp_path)
        raise StorageIOError("write", str(path), e) from e


async def _discard_temp(temp_path: str | None) -> None:
    if temp_path is None:
        return
    try:
        await aiofiles.os.remove(temp_path)
    except OSError:
        pass


async def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    """Write a pretty-printed JSON document atomically.

    Args:
        path: Target path for JSON file
        data: Data to serialize as JSON
    """
    await write_text_atomic(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


async def copy_file_atomic(source: Path, destination: Path) -> None:
    """Copy a file byte for byte, replacing the destination atomically.

    Args:
        source: File to copy
        destination: Path to replace
    """
    await ensure_directory(destination.parent)

    temp_path = None
    try:
        fd, temp_path = tempfile.mkstemp(
            dir=destination.parent,
            prefix=f".{destination.name}.tmp_",
        )
        os.close(fd)
        # aiofiles has no copy; shutil.copyfile runs in the executor
        await aiofiles.os.wrap(shutil.copyfile)(source, temp_path)
        async with aiofiles.open(temp_path, "rb+") as f:
            os.fsync(f.fileno())

        await aiofiles.os.replace(temp_path, destination)
    except Exception as e:
        await _discard_temp(temp_path)
        raise StorageIOError("copy", str(source), e) from e


async def remove_file(path: Path) -> bool:
    """Remove a file if it exists.

    Args:
        path: Path to remove

    Returns:
        True if file was removed, False if it didn't exist
    """
    try:
        if await aiofiles.os.path.exists(path):
            await aiofiles.os.remove(path)
            return True
        return False
    except OSError as e:
        raise StorageIOError("remove", str(path), e) from e
