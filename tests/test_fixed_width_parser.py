from __future__ import annotations

import pytest

from core.records.fixed_width import RECORD_LAYOUTS, FieldSpec, FixedWidthRecordParser
from core.records.models import ParsedRecord


def _record_line(record_type: str, **values: str) -> str:
    layout = RECORD_LAYOUTS[record_type]
    width = max(spec.start + spec.size for spec in layout)
    chars = list(record_type.ljust(width))
    for spec in layout:
        value = values.get(spec.name, "")
        chars[spec.start : spec.start + spec.size] = list(value[: spec.size].ljust(spec.size))
    return "".join(chars)


def _work_line(title: str, seq: int = 1) -> str:
    return _record_line(
        "NWR", transaction_seq=f"{seq:08d}", record_seq="00000000", work_title=title
    )


def test_field_spec_extracts_right_stripped_slice() -> None:
    spec = FieldSpec("name", 3, 6)

    assert spec.extract("ABCfoo   xyz") == "foo"
    assert spec.extract("ABC") == ""


def test_parses_known_record_types() -> None:
    text = "\n".join(
        [
            _record_line("HDR", sender_type="PB", sender_id="000000123", sender_name="ACME MUSIC"),
            _work_line("MIDNIGHT TRAIN"),
            _record_line(
                "SWR",
                transaction_seq="00000001",
                record_seq="00000001",
                last_name="DOE",
                first_name="JANE",
            ),
        ]
    )

    chunk = FixedWidthRecordParser().parse_chunk(text, "sample.v21")

    assert [record.record_type for record in chunk.records] == ["HDR", "NWR", "SWR"]
    assert chunk.records[1].fields["work_title"] == "MIDNIGHT TRAIN"
    assert chunk.records[2].fields["first_name"] == "JANE"
    assert [record.line_number for record in chunk.records] == [1, 2, 3]
    assert chunk.metadata["sender_name"] == "ACME MUSIC"
    assert chunk.statistics.total_records == 3
    assert chunk.statistics.record_counts == {"HDR": 1, "NWR": 1, "SWR": 1}
    assert chunk.statistics.has_errors is False
    assert chunk.statistics.has_warnings is False


def test_line_numbers_start_at_first_line_and_skip_blank_lines() -> None:
    text = "\n".join([_work_line("ONE"), "", "   ", _work_line("TWO", seq=2)])

    chunk = FixedWidthRecordParser().parse_chunk(text, "s", first_line=4001)

    assert [record.line_number for record in chunk.records] == [4001, 4004]


def test_unknown_type_is_kept_with_warning() -> None:
    chunk = FixedWidthRecordParser().parse_chunk("XYZ some payload  ", "s")

    assert chunk.records[0].record_type == "XYZ"
    assert chunk.records[0].fields == {"raw": "XYZ some payload"}
    assert chunk.statistics.has_warnings is True
    assert chunk.statistics.warnings[0].record_type == "XYZ"
    assert chunk.statistics.record_counts == {"XYZ": 1}


def test_missing_required_field_is_error_without_record() -> None:
    chunk = FixedWidthRecordParser().parse_chunk("NWR0000000100000000", "s")

    assert chunk.records == []
    assert chunk.statistics.total_records == 0
    assert chunk.statistics.has_errors is True
    assert "work_title" in chunk.statistics.errors[0].message
    assert chunk.statistics.errors[0].line_number == 1


def test_too_short_line_is_error() -> None:
    chunk = FixedWidthRecordParser().parse_chunk("NW", "s")

    assert chunk.records == []
    assert chunk.statistics.errors[0].message == "line too short for a record type"


def test_revision_uses_work_layout() -> None:
    line = "REV" + _work_line("REVISED TITLE")[3:]

    chunk = FixedWidthRecordParser().parse_chunk(line, "s")

    assert chunk.records[0].record_type == "REV"
    assert chunk.records[0].fields["work_title"] == "REVISED TITLE"


def test_custom_layouts() -> None:
    parser = FixedWidthRecordParser({"ABC": (FieldSpec("code", 3, 4, required=True),)})

    chunk = parser.parse_chunk("ABC1234\nNWR", "s")

    assert chunk.records[0].fields == {"code": "1234"}
    assert chunk.records[1].fields == {"raw": "NWR"}
    assert chunk.statistics.has_warnings is True


def test_parsed_record_fields_are_read_only() -> None:
    source_fields = {"work_title": "DAYBREAK"}
    record = ParsedRecord("NWR", source_fields, 1)
    source_fields["work_title"] = "CHANGED"

    assert record.fields["work_title"] == "DAYBREAK"
    with pytest.raises(TypeError):
        record.fields["work_title"] = "MIDNIGHT"  # type: ignore[index]
    assert record.to_dict() == {
        "record_type": "NWR",
        "fields": {"work_title": "DAYBREAK"},
        "line_number": 1,
    }
