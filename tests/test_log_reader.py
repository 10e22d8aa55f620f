"""Tests for reading the debug log back."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from debug_capture.schemas.records import CaptureRecord
from debug_capture.services.log_reader import read_records


def write_log(log_file: Path, *lines: str | bytes) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    content = b''.join(line if isinstance(line, bytes) else line.encode('utf-8') for line in lines)
    log_file.write_bytes(content)


def record_line(label: str) -> str:
    return CaptureRecord.from_submission({'label': label, 'data': {'n': label}}).to_line()


def test_missing_file_returns_empty_result(log_file: Path) -> None:
    result = read_records(log_file)

    assert result.entries == []
    assert result.count == 0
    assert result.error is None


def test_records_returned_in_file_order(log_file: Path) -> None:
    write_log(log_file, record_line('a'), record_line('b'), record_line('c'))

    result = read_records(log_file)

    assert [e.label for e in result.entries] == ['a', 'b', 'c']
    assert all(isinstance(e.timestamp, datetime) for e in result.entries)
    assert result.entries[0].data == {'n': 'a'}


def test_malformed_line_between_valid_lines_is_skipped(log_file: Path) -> None:
    write_log(log_file, record_line('before'), '{"label": "broken", \n', record_line('after'))

    result = read_records(log_file)

    assert [e.label for e in result.entries] == ['before', 'after']
    assert result.skipped_lines == 1


def test_json_that_is_not_a_record_is_skipped(log_file: Path) -> None:
    write_log(log_file, '[1, 2, 3]\n', '{"label": "no-timestamp", "data": 1}\n', record_line('ok'))

    result = read_records(log_file)

    assert [e.label for e in result.entries] == ['ok']
    assert result.skipped_lines == 2


def test_invalid_utf8_line_is_skipped(log_file: Path) -> None:
    write_log(log_file, record_line('a'), b'\xff\xfe garbage\n', record_line('b'))

    result = read_records(log_file)

    assert [e.label for e in result.entries] == ['a', 'b']
    assert result.skipped_lines == 1


def test_blank_lines_are_ignored(log_file: Path) -> None:
    write_log(log_file, '\n', record_line('a'), '   \n', '\n', record_line('b'))

    result = read_records(log_file)

    assert [e.label for e in result.entries] == ['a', 'b']
    assert result.skipped_lines == 0


def test_tail_returns_last_records_in_order(log_file: Path) -> None:
    write_log(log_file, *(record_line(str(i)) for i in range(10)))

    result = read_records(log_file, tail=3)

    assert [e.label for e in result.entries] == ['7', '8', '9']


def test_tail_larger_than_log_returns_everything(log_file: Path) -> None:
    write_log(log_file, record_line('a'), record_line('b'))

    assert [e.label for e in read_records(log_file, tail=50).entries] == ['a', 'b']


def test_non_positive_tail_returns_everything(log_file: Path) -> None:
    write_log(log_file, record_line('a'), record_line('b'))

    assert read_records(log_file, tail=0).count == 2
    assert read_records(log_file, tail=-1).count == 2


def test_unreadable_log_degrades_to_error_result(tmp_path: Path) -> None:
    # A directory cannot be read as a file
    result = read_records(tmp_path)

    assert result.entries == []
    assert result.error is not None
