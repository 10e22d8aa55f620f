"""
Shared protocols for debug-capture services.

This module contains Protocol definitions used across multiple services.
Having a single source of truth for protocols prevents type incompatibility
issues when the same protocol is defined in multiple modules.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from typing import Protocol


class LoggerProtocol(Protocol):
    """
    Protocol for async logger - enables services to work with any logging implementation.

    Implementations:
    - DualLogger (mcp/utils.py): Logs to both stderr and MCP client
    - CLILogger (cli/logger.py): Logs to stdout with optional verbose mode
    - StderrLogger (below): Timestamped stderr lines for long-lived services
    - NullLogger (below): No-op implementation for when logging is optional
    """

    async def info(self, message: str) -> None: ...
    async def warning(self, message: str) -> None: ...
    async def error(self, message: str) -> None: ...


class StderrLogger:
    """
    Logger for components that outlive a single tool call.

    Writes to stderr because stdout carries the MCP stdio transport.
    """

    def __init__(self, prefix: str = 'debug-capture') -> None:
        self.prefix = prefix

    def _emit(self, level: str, message: str) -> None:
        timestamp = datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S')
        print(f'[{timestamp}] [{self.prefix}] [{level}] {message}', file=sys.stderr, flush=True)

    async def info(self, message: str) -> None:
        self._emit('INFO', message)

    async def warning(self, message: str) -> None:
        self._emit('WARNING', message)

    async def error(self, message: str) -> None:
        self._emit('ERROR', message)


class NullLogger:
    """
    No-op logger implementation for when logging is optional.

    Use this when a function requires a LoggerProtocol but the caller
    doesn't need logging output.
    """

    async def info(self, message: str) -> None:
        pass

    async def warning(self, message: str) -> None:
        pass

    async def error(self, message: str) -> None:
        pass
