"""
MCP tool response schemas.

Tool results wrap operation results with the snippet and guidance text an
agent needs for its next step.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Literal

from debug_capture.base_model import StrictModel
from debug_capture.schemas.operations import LogReadResult, RunningStatus, ServerStatus, StartResult
from debug_capture.schemas.records import CaptureRecord
from debug_capture.snippets import generate_snippet


class StartToolResult(StrictModel):
    """debug_start response."""

    port: int
    url: str
    snippet: str
    message: str

    @classmethod
    def from_start(cls, result: StartResult) -> StartToolResult:
        return cls(
            port=result.port,
            url=result.url,
            snippet=generate_snippet(result.url),
            message=f'Debug server running on port {result.port}. Use the snippet to instrument code.',
        )


class ToolMessage(StrictModel):
    """Confirmation-only response (debug_stop, debug_clear)."""

    message: str


class ReadToolResult(StrictModel):
    """debug_read response."""

    entries: Sequence[CaptureRecord]
    count: int
    skipped_lines: int
    message: str | None = None
    error: str | None = None

    @classmethod
    def from_read(cls, result: LogReadResult) -> ReadToolResult:
        message = None
        if not result.entries:
            message = 'No log entries found. Make sure the debug server is running and code is instrumented.'
        return cls(
            entries=result.entries,
            count=result.count,
            skipped_lines=result.skipped_lines,
            message=message,
            error=result.error,
        )


class ActiveStatusToolResult(StrictModel):
    """debug_status response while running."""

    active: Literal[True] = True
    port: int
    url: str
    snippet: str


class InactiveStatusToolResult(StrictModel):
    """debug_status response while stopped."""

    active: Literal[False] = False
    persisted_port: int | None
    hint: str


def status_tool_result(status: ServerStatus) -> ActiveStatusToolResult | InactiveStatusToolResult:
    """Build the debug_status response for a controller status."""
    if isinstance(status, RunningStatus):
        return ActiveStatusToolResult(port=status.port, url=status.url, snippet=generate_snippet(status.url))

    if status.persisted_port is not None:
        hint = f'Previous session used port {status.persisted_port}. Call debug_start to reuse it.'
    else:
        hint = 'No debug server configured. Call debug_start to begin.'
    return InactiveStatusToolResult(persisted_port=status.persisted_port, hint=hint)
