#!/usr/bin/env -S uv run
"""
Debug Capture MCP Server.

Provides tools for capturing runtime data from instrumented code.

Setup:
    claude mcp add --transport stdio debug-capture -- uv run "$REPO_ROOT/mcp-server.py"

Example:
    # Start capturing; the result carries a ready-to-paste snippet
    debug_start()

    # Inspect what the instrumented code sent
    debug_read(tail=20)
"""

from __future__ import annotations

from debug_capture.mcp.server import main

if __name__ == '__main__':
    main()
