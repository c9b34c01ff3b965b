"""
Local file primitives for machina storage.

All mutations go through write-to-temp-then-rename so concurrent readers
never observe a torn write.
"""

from .file_ops import (
    copy_file_atomic,
    ensure_directory,
    file_exists,
    read_bytes,
    read_text,
    remove_file,
    write_json_atomic,
    write_text_atomic,
)

__all__ = [
    "copy_file_atomic",
    "ensure_directory",
    "file_exists",
    "read_bytes",
    "read_text",
    "remove_file",
    "write_json_atomic",
    "write_text_atomic",
]
