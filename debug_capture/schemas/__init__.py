"""
Pydantic schemas for captured records and operation results.
"""

from __future__ import annotations

from debug_capture.schemas.operations import (
    LogReadResult,
    RunningStatus,
    ServerStatus,
    StartResult,
    StoppedStatus,
)
from debug_capture.schemas.records import DEFAULT_LABEL, CaptureRecord

__all__ = [
    # Records
    'DEFAULT_LABEL',
    'CaptureRecord',
    # Operations
    'LogReadResult',
    'RunningStatus',
    'ServerStatus',
    'StartResult',
    'StoppedStatus',
]
