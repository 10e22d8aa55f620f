"""Command-line interface for debug-capture."""

from __future__ import annotations

from debug_capture.cli.main import app

__all__ = ['app']
