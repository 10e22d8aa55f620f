"""
Shared exceptions for debug-capture.

Exception Hierarchy:
    DebugCaptureError (base)
    └── ListenerError (HTTP listener failures)
        ├── PortInUseError (requested or persisted port is taken)
        └── ListenerStartupError (server task exited before serving)
"""

from __future__ import annotations


class DebugCaptureError(Exception):
    """Base exception for all debug-capture errors."""


class ListenerError(DebugCaptureError):
    """Base exception for HTTP listener failures."""


class PortInUseError(ListenerError):
    """Raised when the port to bind is already in use by another process."""

    def __init__(self, host: str, port: int, cause: OSError) -> None:
        self.host = host
        self.port = port
        self.cause = cause
        super().__init__(
            f'Cannot bind {host}:{port}: {cause.strerror or cause}. '
            f'Stop the process holding the port or start with a different port.'
        )


class ListenerStartupError(ListenerError):
    """Raised when the embedded HTTP server exits before it starts serving."""
