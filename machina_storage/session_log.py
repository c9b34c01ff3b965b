"""
Session log I/O.

The session log is a line-delimited JSON file, one record per line,
append-ordered. It is only ever read in full and rewritten in full via
an atomic replace.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from .exceptions import SessionParseError
from .local.file_ops import file_exists, read_bytes, write_text_atomic
from .records import SessionRecord

logger = logging.getLogger(__name__)


def parse_session_lines(content: str) -> list[SessionRecord]:
    """Parse session log content.

    Blank lines are skipped; line numbers in errors count non-blank lines
    from 1.

    Raises:
        SessionParseError: On the first line that is not a valid record
    """
    lines = [line.strip() for line in content.split("\n")]
    records = []
    for index, line in enumerate(line for line in lines if line):
        try:
            records.append(SessionRecord.from_dict(json.loads(line)))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError subclass
            raise SessionParseError(index + 1, str(e)) from e
    return records


def serialize_session_records(records: list[SessionRecord]) -> str:
    """Render records as log content, newline-terminated when non-empty."""
    content = "\n".join(json.dumps(record.to_dict(), ensure_ascii=False) for record in records)
    return f"{content}\n" if content else ""


async def read_session_records(sessions_file: Path) -> list[SessionRecord]:
    """Read every record in a session log.

    Args:
        sessions_file: Path to the session log

    Returns:
        Records in physical order; empty if the file does not exist
    """
    sessions_file = Path(sessions_file)
    if not await file_exists(sessions_file):
        return []

    content = decode_session_log(await read_bytes(sessions_file))
    if not content.strip():
        return []

    return parse_session_lines(content)


def decode_session_log(raw: bytes) -> str:
    """Decode raw log content as UTF-8.

    Raises:
        SessionParseError: Naming the non-blank line holding the first
            invalid byte sequence
    """
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        preceding = raw[: e.start].split(b"\n")[:-1]
        line = sum(1 for chunk in preceding if chunk.strip()) + 1
        raise SessionParseError(line, f"invalid UTF-8: {e.reason}") from e


async def write_sessions_atomic(sessions_file: Path, records: list[SessionRecord]) -> None:
    """Replace the session log with the given records."""
    await write_text_atomic(Path(sessions_file), serialize_session_records(records))
    logger.debug("Rewrote %s with %d records", sessions_file, len(records))
