"""
Durable append-only log writer.

Records are serialized as NDJSON lines into a buffered file handle. A single
asyncio lock guards the handle, so appends, flushes, truncation and close are
mutually exclusive and lines never interleave.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TextIO

from debug_capture.protocols import LoggerProtocol, NullLogger
from debug_capture.schemas.records import CaptureRecord

__all__ = ['DEFAULT_BUFFER_BYTES', 'DurableLogWriter', 'PeriodicFlusher']

DEFAULT_BUFFER_BYTES = 8 * 1024


class DurableLogWriter:
    """
    Append-only NDJSON sink with an in-memory write buffer.

    While open, appends only touch the buffer; bytes reach stable storage on
    flush(). While closed, appends fall back to a whole-file rewrite so records
    posted with the listener down are not lost. That fallback assumes this
    process is the only writer of the log file.
    """

    def __init__(self, log_file: Path, buffer_size: int = DEFAULT_BUFFER_BYTES) -> None:
        self.log_file = log_file
        self.buffer_size = buffer_size
        self._handle: TextIO | None = None
        self._lock = asyncio.Lock()

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    async def open(self) -> None:
        """Open the buffered handle (no-op if already open)."""
        async with self._lock:
            if self._handle is None:
                self._handle = self._open_handle()

    async def append(self, record: CaptureRecord) -> None:
        """
        Append one record as a single line.

        Args:
            record: Record to append
        """
        line = record.to_line()
        async with self._lock:
            if self._handle is not None:
                self._handle.write(line)
            else:
                self._append_direct(line)

    async def flush(self) -> None:
        """Force buffered bytes to stable storage (no-op when closed)."""
        async with self._lock:
            if self._handle is not None:
                await self._sync_handle(self._handle)

    async def flush_and_close(self) -> None:
        """Final flush, then release the handle. Safe to call repeatedly."""
        async with self._lock:
            await self._close_handle()

    async def truncate(self, *, reopen: bool) -> None:
        """
        Replace the log with an empty file.

        Args:
            reopen: Open a fresh buffered handle afterwards (listener running)
        """
        async with self._lock:
            await self._close_handle()
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            self.log_file.write_text('', encoding='utf-8')
            if reopen:
                self._handle = self._open_handle()

    # ==========================================================================
    # Internals (caller holds self._lock)
    # ==========================================================================

    def _open_handle(self) -> TextIO:
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        return open(self.log_file, 'a', encoding='utf-8', newline='\n', buffering=self.buffer_size)

    async def _sync_handle(self, handle: TextIO) -> None:
        handle.flush()
        await asyncio.to_thread(os.fsync, handle.fileno())

    async def _close_handle(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            await self._sync_handle(handle)
        finally:
            handle.close()

    def _append_direct(self, line: str) -> None:
        # Read-modify-write of the whole file: only correct with a single writer process
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        try:
            existing = self.log_file.read_text(encoding='utf-8')
        except FileNotFoundError:
            existing = ''
        self.log_file.write_text(existing + line, encoding='utf-8', newline='\n')


class PeriodicFlusher:
    """
    Background ticker that flushes a writer on a fixed interval.

    stop() signals the ticker and waits for it to exit, so a flush that is
    already running completes rather than being cancelled.
    """

    def __init__(
        self,
        writer: DurableLogWriter,
        interval_seconds: float,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.writer = writer
        self.interval_seconds = interval_seconds
        self.logger = logger or NullLogger()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self._task is not None:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name='debug-capture-flush')

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        self._stop_event.set()
        await task

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                try:
                    await self.writer.flush()
                except OSError as e:
                    await self.logger.warning(f'Periodic flush of {self.writer.log_file} failed: {e}')
