"""Shared fixtures for debug-capture tests."""

from __future__ import annotations

import socket
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import pytest
import pytest_asyncio

from debug_capture.services.controller import CaptureController
from debug_capture.services.log_writer import DurableLogWriter


@pytest.fixture
def log_file(tmp_path: Path) -> Path:
    # Nested so tests also cover parent directory creation
    return tmp_path / '.debug-capture' / 'debug.log'


@pytest.fixture
def port_file(tmp_path: Path) -> Path:
    return tmp_path / '.debug-capture' / 'debug.port'


@pytest_asyncio.fixture
async def writer(log_file: Path) -> AsyncIterator[DurableLogWriter]:
    writer = DurableLogWriter(log_file)
    await writer.open()
    yield writer
    await writer.flush_and_close()


@pytest_asyncio.fixture
async def controller(log_file: Path, port_file: Path) -> AsyncIterator[CaptureController]:
    controller = CaptureController(log_file, port_file, url_host='127.0.0.1', flush_interval_seconds=0.05)
    yield controller
    await controller.stop()


@pytest.fixture
def occupied_port() -> Iterator[int]:
    """A loopback port held by another listening socket."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(('127.0.0.1', 0))
    sock.listen()
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()
