"""
Capture lifecycle controller.

Owns the Stopped/Running state machine and every resource tied to a running
session: the HTTP listener, the buffered log writer and the flush ticker.
One instance per process; callers receive it explicitly.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import attrs

from debug_capture.config.base import CaptureSettings
from debug_capture.protocols import LoggerProtocol, NullLogger
from debug_capture.schemas.operations import (
    LogReadResult,
    RunningStatus,
    ServerStatus,
    StartResult,
    StoppedStatus,
)
from debug_capture.services.listener import CaptureListener, create_app
from debug_capture.services.log_reader import read_records
from debug_capture.services.log_writer import DEFAULT_BUFFER_BYTES, DurableLogWriter, PeriodicFlusher
from debug_capture.services.ports import PortStore, resolve_port

__all__ = ['CaptureController', 'RunningSession']

DEFAULT_FLUSH_INTERVAL_SECONDS = 5.0


@attrs.define(frozen=True)
class RunningSession:
    """Resources of the Running state."""

    port: int
    listener: CaptureListener
    flusher: PeriodicFlusher


class CaptureController:
    """
    Start/stop/status/read/clear for one capture service.

    State is Stopped when `_session` is None and Running otherwise.
    Transitions are serialized by a lifecycle lock, so concurrent start()
    calls bind once.
    """

    def __init__(
        self,
        log_file: Path,
        port_file: Path,
        *,
        bind_host: str = '127.0.0.1',
        url_host: str = 'localhost',
        flush_interval_seconds: float = DEFAULT_FLUSH_INTERVAL_SECONDS,
        buffer_size: int = DEFAULT_BUFFER_BYTES,
        logger: LoggerProtocol | None = None,
    ) -> None:
        self.log_file = log_file
        self.bind_host = bind_host
        self.url_host = url_host
        self.flush_interval_seconds = flush_interval_seconds
        self.logger = logger or NullLogger()

        self.port_store = PortStore(port_file)
        self.writer = DurableLogWriter(log_file, buffer_size=buffer_size)

        self._session: RunningSession | None = None
        self._lifecycle_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: CaptureSettings, logger: LoggerProtocol | None = None) -> CaptureController:
        """Build a controller from application settings."""
        return cls(
            log_file=settings.LOG_FILE,
            port_file=settings.PORT_FILE,
            bind_host=settings.BIND_HOST,
            url_host=settings.URL_HOST,
            flush_interval_seconds=settings.FLUSH_INTERVAL_SECONDS,
            buffer_size=settings.WRITE_BUFFER_BYTES,
            logger=logger,
        )

    @property
    def is_running(self) -> bool:
        return self._session is not None

    def url_for(self, port: int) -> str:
        return f'http://{self.url_host}:{port}'

    async def start(self, port: int | None = None) -> StartResult:
        """
        Start capturing.

        Already running: returns the existing binding, ignoring `port`.

        Args:
            port: Explicit port (default: persisted port, else OS-assigned)

        Returns:
            StartResult with bound port and base URL

        Raises:
            PortInUseError: If the chosen port is taken by another process
            ListenerError: If the host or port cannot be bound
            ListenerStartupError: If the HTTP server fails to come up
        """
        async with self._lifecycle_lock:
            if self._session is not None:
                return StartResult(port=self._session.port, url=self.url_for(self._session.port))

            target_port = resolve_port(port, self.port_store)
            listener = CaptureListener(create_app(self.writer), self.bind_host)
            actual_port = listener.bind(target_port)

            try:
                await self.writer.open()
                await listener.serve()
            except BaseException:
                await self.writer.flush_and_close()
                await listener.shutdown()
                raise

            flusher = PeriodicFlusher(self.writer, self.flush_interval_seconds, self.logger)
            self._session = RunningSession(port=actual_port, listener=listener, flusher=flusher)

            try:
                self.port_store.save(actual_port)
            except OSError as e:
                await self.logger.warning(f'Could not persist port {actual_port} to {self.port_store.port_file}: {e}')

            flusher.start()

            url = self.url_for(actual_port)
            await self.logger.info(f'Capture listener running on {url}, logging to {self.log_file}')
            return StartResult(port=actual_port, url=url)

    async def stop(self) -> None:
        """Stop capturing: drain the writer and unbind. No-op when stopped."""
        async with self._lifecycle_lock:
            session, self._session = self._session, None
            if session is None:
                return

            try:
                await session.flusher.stop()
                await self.writer.flush_and_close()
            finally:
                await session.listener.shutdown()

            await self.logger.info(f'Capture listener on port {session.port} stopped')

    def status(self) -> ServerStatus:
        """Current binding, or the persisted port of the last session."""
        session = self._session
        if session is not None:
            return RunningStatus(port=session.port, url=self.url_for(session.port))
        return StoppedStatus(persisted_port=self.port_store.load())

    async def read_logs(self, tail: int | None = None) -> LogReadResult:
        """
        Read captured records, flushing buffered bytes first.

        Args:
            tail: If positive, only the last `tail` records

        Returns:
            LogReadResult (never raises for storage faults)
        """
        try:
            await self.writer.flush()
        except OSError as e:
            await self.logger.warning(f'Flush before read failed: {e}')
        return read_records(self.log_file, tail)

    async def clear_logs(self) -> None:
        """Truncate the log; capture continues if running."""
        async with self._lifecycle_lock:
            await self.writer.truncate(reopen=self.is_running)
        await self.logger.info(f'Cleared {self.log_file}')
