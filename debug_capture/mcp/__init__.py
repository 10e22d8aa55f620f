"""MCP server entry point for debug-capture."""

from __future__ import annotations

from debug_capture.mcp.server import main, server

__all__ = ['main', 'server']
