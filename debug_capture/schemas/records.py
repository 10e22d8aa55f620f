"""
Captured record schema.

One CaptureRecord is one line of the NDJSON debug log.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from debug_capture.base_model import StrictModel
from debug_capture.types import JsonDatetime

DEFAULT_LABEL = 'unknown'


class CaptureRecord(StrictModel):
    """A single captured event: when, what, and the payload."""

    timestamp: JsonDatetime
    label: str
    data: Any

    @classmethod
    def from_submission(cls, body: Any, *, now: datetime | None = None) -> CaptureRecord:
        """
        Build a record from a decoded POST /log body.

        Object bodies contribute their `label` and `data` fields. A missing or
        null `data` falls back to the whole body, and any other JSON value is
        captured as-is under the default label.

        Args:
            body: Decoded JSON body (must not be None)
            now: Timestamp override (default: current UTC time)

        Returns:
            New immutable CaptureRecord
        """
        label: Any = None
        data: Any = None
        if isinstance(body, Mapping):
            label = body.get('label')
            data = body.get('data')

        if label is None:
            label = DEFAULT_LABEL
        elif not isinstance(label, str):
            label = str(label)

        return cls(
            timestamp=now or datetime.now(UTC),
            label=label,
            data=body if data is None else data,
        )

    def to_line(self) -> str:
        """Serialize to a single NDJSON line (newline included)."""
        return self.model_dump_json() + '\n'
