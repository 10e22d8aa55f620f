"""
Debug log reader.

Parses the NDJSON log back into CaptureRecord objects. A line that fails to
parse is skipped so one corrupted record never hides the rest.
"""

from __future__ import annotations

from pathlib import Path

import pydantic

from debug_capture.schemas.operations import LogReadResult
from debug_capture.schemas.records import CaptureRecord

__all__ = ['read_records']


def read_records(log_file: Path, tail: int | None = None) -> LogReadResult:
    """
    Read all records from the log file.

    Callers holding a buffered writer must flush it first.

    Args:
        log_file: Path to the NDJSON log
        tail: If positive, keep only the last `tail` records

    Returns:
        LogReadResult with records in file order. A missing file yields an
        empty result; an unreadable file yields an empty result with `error` set.
    """
    try:
        raw = log_file.read_bytes()
    except FileNotFoundError:
        return LogReadResult(entries=[], log_file=str(log_file))
    except OSError as e:
        return LogReadResult(entries=[], log_file=str(log_file), error=f'Cannot read {log_file}: {e}')

    entries: list[CaptureRecord] = []
    skipped = 0

    for raw_line in raw.split(b'\n'):
        if not raw_line.strip():
            continue

        try:
            line = raw_line.decode('utf-8')
            entries.append(CaptureRecord.model_validate_json(line))
        except (UnicodeDecodeError, pydantic.ValidationError):
            skipped += 1

    if tail is not None and tail > 0:
        entries = entries[-tail:]

    return LogReadResult(entries=entries, skipped_lines=skipped, log_file=str(log_file))
