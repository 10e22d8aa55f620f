"""Local capture service for runtime debug traces."""

from __future__ import annotations

__version__ = '0.1.0'
