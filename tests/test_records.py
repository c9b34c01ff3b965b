"""Tests for the session record model and checksums."""

import re

import pytest

from machina_storage import SessionParseError, SessionRecord, compute_checksum
from machina_storage.records import canonical_json, utc_timestamp
from machina_storage.session_log import parse_session_lines, serialize_session_records


class TestChecksum:
    """Tests for compute_checksum."""

    def test_hex_sha256(self) -> None:
        checksum = compute_checksum("s", "2026-02-11T00:00:00.000Z", {"a": 1}, False)
        assert re.fullmatch(r"[0-9a-f]{64}", checksum)

    def test_independent_of_key_order(self) -> None:
        """Payload key insertion order does not change the checksum."""
        first = compute_checksum("s", "t", {"a": 1, "b": {"x": 1, "y": 2}}, False)
        second = compute_checksum("s", "t", {"b": {"y": 2, "x": 1}, "a": 1}, False)
        assert first == second

    def test_deleted_flag_changes_checksum(self) -> None:
        assert compute_checksum("s", "t", None, True) != compute_checksum("s", "t", None, False)

    def test_canonical_form_is_compact(self) -> None:
        assert canonical_json({"b": [1, {"d": "é", "c": None}], "a": True}) == '{"a":true,"b":[1,{"c":null,"d":"é"}]}'


class TestSessionRecord:
    """Tests for SessionRecord conversion and normalization."""

    def test_from_dict_reads_optional_fields(self) -> None:
        record = SessionRecord.from_dict(
            {"id": "s", "updatedAt": "t", "payload": [1], "deleted": True, "checksum": "abc"}
        )
        assert record == SessionRecord("s", "t", [1], True, "abc")
        assert record.is_tombstone

    @pytest.mark.parametrize(("flag", "expected"), [(1, True), ("yes", True), (0, False), ("", False)])
    def test_from_dict_coerces_deleted_flag(self, flag, expected) -> None:
        record = SessionRecord.from_dict({"id": "s", "updatedAt": "t", "deleted": flag})
        assert record.deleted is expected
        assert record.is_tombstone is expected

    def test_from_dict_missing_payload_is_none(self) -> None:
        record = SessionRecord.from_dict({"id": "s", "updatedAt": "t"})
        assert record.payload is None
        assert record.deleted is None

    @pytest.mark.parametrize(
        "data",
        [
            {"updatedAt": "t"},
            {"id": "s"},
            {"id": 1, "updatedAt": "t"},
            ["s", "t"],
        ],
    )
    def test_from_dict_rejects_malformed(self, data) -> None:
        with pytest.raises(ValueError):
            SessionRecord.from_dict(data)

    def test_to_dict_omits_absent_optionals(self) -> None:
        assert SessionRecord("s", "t", {"k": "v"}).to_dict() == {"id": "s", "updatedAt": "t", "payload": {"k": "v"}}

    def test_normalized_v2_attaches_checksum(self) -> None:
        record = SessionRecord("s", "t", {"k": "v"}, deleted=False)
        normalized = record.normalized(2)
        assert normalized.checksum == compute_checksum("s", "t", {"k": "v"}, False)
        assert record.checksum is None

    def test_normalized_v1_drops_checksum(self) -> None:
        record = SessionRecord("s", "t", None, checksum="stale")
        assert record.normalized(1).checksum is None

    def test_normalized_recomputes_stale_checksum(self) -> None:
        record = SessionRecord("s", "t", None, checksum="stale")
        assert record.normalized(2).checksum == record.expected_checksum()


class TestSessionLines:
    """Tests for parsing and rendering log content."""

    def test_parse_skips_blank_lines(self) -> None:
        content = '{"id":"a","updatedAt":"t"}\n\n   \n{"id":"b","updatedAt":"t"}\n'
        assert [r.id for r in parse_session_lines(content)] == ["a", "b"]

    def test_parse_error_reports_line(self) -> None:
        content = '{"id":"a","updatedAt":"t"}\n{"id":"b"}\n'
        with pytest.raises(SessionParseError) as exc_info:
            parse_session_lines(content)
        assert exc_info.value.line == 2
        assert exc_info.value.code == "SESSION_PARSE_FAILED"
        assert "line 2" in exc_info.value.message

    def test_parse_invalid_json(self) -> None:
        with pytest.raises(SessionParseError) as exc_info:
            parse_session_lines("not-json\n")
        assert exc_info.value.line == 1

    def test_serialize_empty(self) -> None:
        assert serialize_session_records([]) == ""

    def test_serialize_one_record_per_line(self) -> None:
        content = serialize_session_records([SessionRecord("a", "t"), SessionRecord("b", "t")])
        assert content.endswith("\n")
        assert len(content.splitlines()) == 2


def test_utc_timestamp_format() -> None:
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())
