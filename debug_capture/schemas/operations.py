"""
Operation result schemas.

Models returned by the lifecycle controller to the MCP and CLI layers.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal, TypeAlias

from debug_capture.base_model import StrictModel
from debug_capture.schemas.records import CaptureRecord
from debug_capture.types import PathStr


class StartResult(StrictModel):
    """Binding of a running capture listener."""

    port: int
    url: str


class RunningStatus(StrictModel):
    """Status while the listener is bound."""

    active: Literal[True] = True
    port: int
    url: str


class StoppedStatus(StrictModel):
    """Status while stopped.

    persisted_port is the port of the most recent session, or None when no
    session ever ran here or the port file is unreadable.
    """

    active: Literal[False] = False
    persisted_port: int | None


ServerStatus: TypeAlias = RunningStatus | StoppedStatus


class LogReadResult(StrictModel):
    """Records parsed from the debug log.

    Reading never raises: an unreadable log yields no entries and sets `error`.
    """

    entries: Sequence[CaptureRecord]
    skipped_lines: int = 0  # Lines that failed to parse as a CaptureRecord
    log_file: PathStr
    error: str | None = None

    @property
    def count(self) -> int:
        return len(self.entries)
