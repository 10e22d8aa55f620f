"""
Port selection and persistence.

The port of the last running session is stored as a plain base-10 integer so
instrumentation inserted during one session keeps working after a restart.
"""

from __future__ import annotations

from pathlib import Path

__all__ = ['EPHEMERAL_PORT', 'MAX_PORT', 'PortStore', 'resolve_port']

# Asks the OS to assign a free port
EPHEMERAL_PORT = 0
MAX_PORT = 65535


class PortStore:
    """Reads and writes the persisted port file."""

    def __init__(self, port_file: Path) -> None:
        self.port_file = port_file

    def load(self) -> int | None:
        """
        Load the persisted port.

        Returns:
            The stored port, or None if the file is missing, unreadable, or
            does not hold a port number (0-65535)
        """
        try:
            content = self.port_file.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError):
            return None

        try:
            port = int(content.strip(), 10)
        except ValueError:
            return None

        return port if 0 <= port <= MAX_PORT else None

    def save(self, port: int) -> None:
        """Persist the port, creating the parent directory if needed."""
        self.port_file.parent.mkdir(parents=True, exist_ok=True)
        self.port_file.write_text(str(port), encoding='utf-8')


def resolve_port(requested_port: int | None, store: PortStore) -> int:
    """
    Pick the port to bind.

    Priority: explicit request, then the persisted port, then an
    OS-assigned ephemeral port.

    Args:
        requested_port: Port supplied by the caller, if any
        store: Persisted port storage

    Returns:
        Port number to bind (EPHEMERAL_PORT for OS-assigned)
    """
    if requested_port is not None:
        return requested_port

    persisted = store.load()
    if persisted is not None:
        return persisted

    return EPHEMERAL_PORT
